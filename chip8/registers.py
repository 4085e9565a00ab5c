from .constants import PROGRAM_START, REGISTER_COUNT, STACK_DEPTH
from .errors import InvalidRegister, StackOverflow, StackUnderflow


class RegisterFile:
    """V0-VF, the index register I, the program counter and the call stack.

    VF doubles as the carry/borrow/collision flag. Callers that write a
    result and a flag must write VF last.
    """

    def __init__(self, stack_depth=STACK_DEPTH):
        self.stack_depth = stack_depth
        self.V = [0] * REGISTER_COUNT
        self.I = 0
        self.pc = PROGRAM_START
        self.stack = []

    def reset(self):
        self.V[:] = [0] * REGISTER_COUNT
        self.I = 0
        self.pc = PROGRAM_START
        self.stack.clear()

    @property
    def sp(self):
        return len(self.stack)

    def get(self, index):
        if not 0 <= index < REGISTER_COUNT:
            raise InvalidRegister(index)
        return self.V[index]

    def set(self, index, value):
        if not 0 <= index < REGISTER_COUNT:
            raise InvalidRegister(index)
        self.V[index] = value & 0xFF

    def push(self, addr):
        if len(self.stack) >= self.stack_depth:
            raise StackOverflow(len(self.stack))
        self.stack.append(addr & 0xFFFF)

    def pop(self):
        if not self.stack:
            raise StackUnderflow()
        return self.stack.pop()
