"""CHIP-8 interpreter core."""
from .cpu import Chip8, StepResult
from .errors import (
    Chip8Error,
    InvalidKey,
    InvalidRegister,
    OutOfBounds,
    ProgramTooLarge,
    StackOverflow,
    StackUnderflow,
    UnknownOpcode,
)
from .instructions import Instruction, Op, decode, disassemble
from .quirks import PRESETS, Quirks, get_preset

__version__ = "0.1.0"
