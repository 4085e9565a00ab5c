import logging

from .constants import KEY_COUNT
from .errors import InvalidKey

log = logging.getLogger(__name__)


class Keypad:
    """16-key hex keypad state.

    The host writes key transitions with set_key(). While the CPU waits on
    Fx0A, released->pressed transitions are queued so a short tap between
    two steps is not lost.
    """

    def __init__(self):
        self.keys = [False] * KEY_COUNT
        self.waiting = False
        self._presses = []

    def reset(self):
        self.keys[:] = [False] * KEY_COUNT
        self.waiting = False
        self._presses.clear()

    def _check(self, index):
        if not 0 <= index < KEY_COUNT:
            raise InvalidKey(index)

    def set_key(self, index, pressed):
        self._check(index)
        pressed = bool(pressed)
        if pressed and not self.keys[index]:
            log.debug("Key %X pressed", index)
            if self.waiting:
                self._presses.append(index)
        self.keys[index] = pressed

    def is_pressed(self, index):
        self._check(index)
        return self.keys[index]

    def begin_wait(self):
        # keys already held when the wait starts do not count
        self.waiting = True
        self._presses.clear()

    def wait_for_press(self):
        """Return the earliest key pressed since begin_wait(), or None."""
        if not self._presses:
            return None
        self.waiting = False
        key = self._presses.pop(0)
        self._presses.clear()
        return key
