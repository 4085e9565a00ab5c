from .constants import MEMORY_SIZE
from .errors import OutOfBounds


class Memory:
    """Flat 4 KiB byte store. Every access is bounds-checked."""

    def __init__(self, size=MEMORY_SIZE):
        self.size = size
        self.data = bytearray(size)

    def _check(self, addr, length=1):
        if addr < 0 or addr + length > self.size:
            # report the first address that falls outside
            raise OutOfBounds(addr if addr < 0 or addr >= self.size else self.size)

    def read_byte(self, addr):
        self._check(addr)
        return self.data[addr]

    def write_byte(self, addr, value):
        self._check(addr)
        self.data[addr] = value & 0xFF

    def read_word(self, addr):
        # big-endian, used for instruction fetch
        self._check(addr, 2)
        return (self.data[addr] << 8) | self.data[addr + 1]

    def read_block(self, addr, length):
        self._check(addr, length)
        return bytes(self.data[addr:addr + length])

    def write_block(self, addr, values):
        values = bytes(values)
        self._check(addr, len(values))
        self.data[addr:addr + len(values)] = values

    def clear(self):
        self.data[:] = bytes(self.size)

