import pytest

from chip8 import Chip8


def assemble(*words):
    out = bytearray()
    for w in words:
        out += bytes([(w >> 8) & 0xFF, w & 0xFF])
    return bytes(out)


@pytest.fixture
def make_machine():
    def _make(*words, quirks=None):
        machine = Chip8(quirks)
        machine.load(assemble(*words))
        return machine
    return _make
