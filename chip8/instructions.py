"""Instruction decoding.

decode() turns a raw 16-bit word into an Instruction: the matched Op plus
every operand field the word can carry. Execution lives in cpu.py.
"""
from collections import namedtuple
from enum import Enum
from functools import lru_cache

from .errors import UnknownOpcode


class Op(Enum):
    # value doubles as the disassembly template
    CLS = "CLS"
    RET = "RET"
    SYS = "SYS 0x{nnn:03X}"
    JP = "JP 0x{nnn:03X}"
    CALL = "CALL 0x{nnn:03X}"
    SE_Vx_kk = "SE V{x:X}, 0x{kk:02X}"
    SNE_Vx_kk = "SNE V{x:X}, 0x{kk:02X}"
    SE_Vx_Vy = "SE V{x:X}, V{y:X}"
    LD_Vx_kk = "LD V{x:X}, 0x{kk:02X}"
    ADD_Vx_kk = "ADD V{x:X}, 0x{kk:02X}"
    LD_Vx_Vy = "LD V{x:X}, V{y:X}"
    OR = "OR V{x:X}, V{y:X}"
    AND = "AND V{x:X}, V{y:X}"
    XOR = "XOR V{x:X}, V{y:X}"
    ADD = "ADD V{x:X}, V{y:X}"
    SUB = "SUB V{x:X}, V{y:X}"
    SHR = "SHR V{x:X}, V{y:X}"
    SUBN = "SUBN V{x:X}, V{y:X}"
    SHL = "SHL V{x:X}, V{y:X}"
    SNE_Vx_Vy = "SNE V{x:X}, V{y:X}"
    LD_I = "LD I, 0x{nnn:03X}"
    JP_V0 = "JP V0, 0x{nnn:03X}"
    RND = "RND V{x:X}, 0x{kk:02X}"
    DRW = "DRW V{x:X}, V{y:X}, {n}"
    SKP = "SKP V{x:X}"
    SKNP = "SKNP V{x:X}"
    LD_Vx_DT = "LD V{x:X}, DT"
    WAITKEY = "LD V{x:X}, K"
    LD_DT_Vx = "LD DT, V{x:X}"
    LD_ST_Vx = "LD ST, V{x:X}"
    ADD_I_Vx = "ADD I, V{x:X}"
    FONT = "LD F, V{x:X}"
    BCD = "LD B, V{x:X}"
    STORE = "LD [I], V{x:X}"
    LOAD = "LD V{x:X}, [I]"


# (mask, pattern, op) - first match wins, so 00E0/00EE shadow 0nnn
OPCODES = [
    (0xFFFF, 0x00E0, Op.CLS),
    (0xFFFF, 0x00EE, Op.RET),
    (0xF000, 0x0000, Op.SYS),

    (0xF000, 0x1000, Op.JP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SE_Vx_kk),
    (0xF000, 0x4000, Op.SNE_Vx_kk),
    (0xF00F, 0x5000, Op.SE_Vx_Vy),
    (0xF000, 0x6000, Op.LD_Vx_kk),
    (0xF000, 0x7000, Op.ADD_Vx_kk),

    (0xF00F, 0x8000, Op.LD_Vx_Vy),
    (0xF00F, 0x8001, Op.OR),
    (0xF00F, 0x8002, Op.AND),
    (0xF00F, 0x8003, Op.XOR),
    (0xF00F, 0x8004, Op.ADD),
    (0xF00F, 0x8005, Op.SUB),
    (0xF00F, 0x8006, Op.SHR),
    (0xF00F, 0x8007, Op.SUBN),
    (0xF00F, 0x800E, Op.SHL),

    (0xF00F, 0x9000, Op.SNE_Vx_Vy),
    (0xF000, 0xA000, Op.LD_I),
    (0xF000, 0xB000, Op.JP_V0),
    (0xF000, 0xC000, Op.RND),
    (0xF000, 0xD000, Op.DRW),

    (0xF0FF, 0xE09E, Op.SKP),
    (0xF0FF, 0xE0A1, Op.SKNP),

    (0xF0FF, 0xF007, Op.LD_Vx_DT),
    (0xF0FF, 0xF00A, Op.WAITKEY),
    (0xF0FF, 0xF015, Op.LD_DT_Vx),
    (0xF0FF, 0xF018, Op.LD_ST_Vx),
    (0xF0FF, 0xF01E, Op.ADD_I_Vx),
    (0xF0FF, 0xF029, Op.FONT),
    (0xF0FF, 0xF033, Op.BCD),
    (0xF0FF, 0xF055, Op.STORE),
    (0xF0FF, 0xF065, Op.LOAD),
]


class Instruction(namedtuple("Instruction", "op opcode x y n kk nnn")):
    __slots__ = ()

    def disassemble(self):
        return self.op.value.format(x=self.x, y=self.y, n=self.n, kk=self.kk, nnn=self.nnn)

    def __str__(self):
        return self.disassemble()


@lru_cache(maxsize=None)
def decode(opcode):
    """Decode a 16-bit word. Raises UnknownOpcode if no pattern matches."""
    if not 0 <= opcode <= 0xFFFF:
        raise UnknownOpcode(opcode)
    for mask, pattern, op in OPCODES:
        if opcode & mask == pattern:
            return Instruction(
                op=op,
                opcode=opcode,
                x=(opcode >> 8) & 0xF,
                y=(opcode >> 4) & 0xF,
                n=opcode & 0xF,
                kk=opcode & 0xFF,
                nnn=opcode & 0x0FFF,
            )
    raise UnknownOpcode(opcode)


def disassemble(opcode):
    return decode(opcode).disassemble()
