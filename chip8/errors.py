"""Fatal conditions raised by the interpreter core.

None of these are recoverable: the host reports them and stops or resets
the machine.
"""


class Chip8Error(Exception):
    """Base class for every fatal interpreter condition."""


class OutOfBounds(Chip8Error):
    def __init__(self, address):
        self.address = address
        super().__init__("Memory access out of bounds: 0x%X" % address)


class UnknownOpcode(Chip8Error):
    def __init__(self, opcode):
        self.opcode = opcode
        super().__init__("Unknown opcode: %04X" % opcode)


class StackOverflow(Chip8Error):
    def __init__(self, depth):
        self.depth = depth
        super().__init__("Stack overflow on CALL (depth %d)" % depth)


class StackUnderflow(Chip8Error):
    def __init__(self):
        super().__init__("Stack underflow on RET")


class ProgramTooLarge(Chip8Error):
    def __init__(self, size, capacity):
        self.size = size
        self.capacity = capacity
        super().__init__("Program is %d bytes, only %d fit in memory" % (size, capacity))


class InvalidRegister(Chip8Error):
    def __init__(self, index):
        self.index = index
        super().__init__("Invalid register index: %r" % (index,))


class InvalidKey(Chip8Error):
    def __init__(self, index):
        self.index = index
        super().__init__("Invalid key index: %r" % (index,))
