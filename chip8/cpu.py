"""The CHIP-8 execution engine.

One Chip8 instance owns the whole machine: memory, registers, timers,
display and keypad. The host drives it by calling step() at whatever
instruction rate it likes and tick() at 60 Hz.
"""
import logging
import random
from enum import Enum

from .constants import FONT_SPRITE_SIZE, FONT_START, FONTSET, MAX_PROGRAM_SIZE, PROGRAM_START
from .display import Display
from .errors import Chip8Error, ProgramTooLarge
from .instructions import Op, decode
from .keypad import Keypad
from .memory import Memory
from .quirks import Quirks
from .registers import RegisterFile
from .timers import Timers

log = logging.getLogger(__name__)


class StepResult(Enum):
    EXECUTED = "executed"
    AWAITING_INPUT = "awaiting_input"


class Chip8:

    def __init__(self, quirks=None, rng=None):
        self.quirks = quirks if quirks is not None else Quirks()
        self.random = rng if rng is not None else random.Random()

        # ---- Machine state ----
        self.memory = Memory()
        self.registers = RegisterFile()
        self.timers = Timers()
        self.display = Display(wrap=not self.quirks.clip_sprites)
        self.keypad = Keypad()
        self.waiting_register = None   # VX target while blocked on Fx0A
        self.cycle_count = 0

        self.setup_funcmap()
        self.reset()

    # ---- Lifecycle ----
    def reset(self):
        """Return every component to its power-on state (font loaded, PC at 0x200)."""
        self.memory.clear()
        self.memory.write_block(FONT_START, FONTSET)
        self.registers.reset()
        self.timers.reset()
        self.display.clear()
        self.keypad.reset()
        self.waiting_register = None
        self.cycle_count = 0

    def load(self, program):
        """Reset the machine and copy `program` into memory at 0x200.

        Raises ProgramTooLarge if it does not fit; the machine is left
        untouched in that case.
        """
        program = bytes(program)
        if len(program) > MAX_PROGRAM_SIZE:
            raise ProgramTooLarge(len(program), MAX_PROGRAM_SIZE)
        self.reset()
        self.memory.write_block(PROGRAM_START, program)
        log.info("Loaded %d-byte program at 0x%03X", len(program), PROGRAM_START)
        return len(program)

    @staticmethod
    def font_address(digit):
        return FONT_START + (digit & 0xF) * FONT_SPRITE_SIZE

    @property
    def awaiting_key(self):
        return self.waiting_register is not None

    # ---- Host entry points ----
    def tick(self):
        self.timers.tick()

    def step(self):
        """Execute exactly one instruction.

        While blocked on Fx0A nothing is fetched: the call polls the keypad
        and returns AWAITING_INPUT until a key goes down.
        """
        if self.waiting_register is not None:
            return self._resume_wait()

        regs = self.registers
        pc = regs.pc
        opcode = self.memory.read_word(pc)
        instr = decode(opcode)
        if log.isEnabledFor(logging.DEBUG):
            log.debug("0x%03X: %04X  %s", pc, opcode, instr)

        regs.pc = pc + 2
        try:
            self.funcmap[instr.op](instr)
        except Chip8Error:
            regs.pc = pc
            raise

        # Fx0A is counted when the wait completes, see _resume_wait
        if self.waiting_register is not None:
            return StepResult.AWAITING_INPUT
        self.cycle_count += 1
        return StepResult.EXECUTED

    def run(self, cycles):
        """Step up to `cycles` times, stopping early on a key wait.

        Returns the number of instructions completed.
        """
        done = 0
        for _ in range(cycles):
            if self.step() is StepResult.AWAITING_INPUT:
                break
            done += 1
        return done

    def _resume_wait(self):
        key = self.keypad.wait_for_press()
        if key is None:
            return StepResult.AWAITING_INPUT
        regs = self.registers
        regs.V[self.waiting_register] = key
        regs.pc += 2
        log.debug("Key %X released the wait into V%X", key, self.waiting_register)
        self.waiting_register = None
        self.cycle_count += 1
        return StepResult.EXECUTED

    # ---- Opcode function map ----
    def setup_funcmap(self):
        self.funcmap = {
            Op.CLS: self.op_CLS,              # 00E0 - Clear the screen
            Op.RET: self.op_RET,              # 00EE - Return from a subroutine
            Op.SYS: self.op_SYS,              # 0nnn - Machine code routine (ignored)
            Op.JP: self.op_JP,                # 1nnn - Jump to nnn
            Op.CALL: self.op_CALL,            # 2nnn - Call subroutine at nnn
            Op.SE_Vx_kk: self.op_SE_Vx_kk,    # 3xkk - Skip if Vx == kk
            Op.SNE_Vx_kk: self.op_SNE_Vx_kk,  # 4xkk - Skip if Vx != kk
            Op.SE_Vx_Vy: self.op_SE_Vx_Vy,    # 5xy0 - Skip if Vx == Vy
            Op.LD_Vx_kk: self.op_LD_Vx_kk,    # 6xkk - Vx = kk
            Op.ADD_Vx_kk: self.op_ADD_Vx_kk,  # 7xkk - Vx += kk, no carry
            Op.LD_Vx_Vy: self.op_LD_Vx_Vy,    # 8xy0 - Vx = Vy
            Op.OR: self.op_OR,                # 8xy1 - Vx |= Vy
            Op.AND: self.op_AND,              # 8xy2 - Vx &= Vy
            Op.XOR: self.op_XOR,              # 8xy3 - Vx ^= Vy
            Op.ADD: self.op_ADD,              # 8xy4 - Vx += Vy, VF = carry
            Op.SUB: self.op_SUB,              # 8xy5 - Vx -= Vy, VF = NOT borrow
            Op.SHR: self.op_SHR,              # 8xy6 - Vx = src >> 1, VF = bit out
            Op.SUBN: self.op_SUBN,            # 8xy7 - Vx = Vy - Vx, VF = NOT borrow
            Op.SHL: self.op_SHL,              # 8xyE - Vx = src << 1, VF = bit out
            Op.SNE_Vx_Vy: self.op_SNE_Vx_Vy,  # 9xy0 - Skip if Vx != Vy
            Op.LD_I: self.op_LD_I,            # Annn - I = nnn
            Op.JP_V0: self.op_JP_V0,          # Bnnn - Jump to nnn + V0 (or Vx)
            Op.RND: self.op_RND,              # Cxkk - Vx = random & kk
            Op.DRW: self.op_DRW,              # Dxyn - Draw n-row sprite at (Vx, Vy)
            Op.SKP: self.op_SKP,              # Ex9E - Skip if key Vx is down
            Op.SKNP: self.op_SKNP,            # ExA1 - Skip if key Vx is up
            Op.LD_Vx_DT: self.op_LD_Vx_DT,    # Fx07 - Vx = delay timer
            Op.WAITKEY: self.op_WAITKEY,      # Fx0A - Wait for a key, Vx = key
            Op.LD_DT_Vx: self.op_LD_DT_Vx,    # Fx15 - delay timer = Vx
            Op.LD_ST_Vx: self.op_LD_ST_Vx,    # Fx18 - sound timer = Vx
            Op.ADD_I_Vx: self.op_ADD_I_Vx,    # Fx1E - I += Vx
            Op.FONT: self.op_FONT,            # Fx29 - I = font sprite for digit Vx
            Op.BCD: self.op_BCD,              # Fx33 - [I..I+2] = BCD of Vx
            Op.STORE: self.op_STORE,          # Fx55 - [I..I+x] = V0..Vx
            Op.LOAD: self.op_LOAD,            # Fx65 - V0..Vx = [I..I+x]
        }

    # ---- Opcode handlers ----
    # VF is always written after the operands are read, so VX/VY = VF works.

    def op_SYS(self, instr):
        log.debug("SYS call ignored (0nnn)")

    def op_CLS(self, instr):
        self.display.clear()

    def op_RET(self, instr):
        self.registers.pc = self.registers.pop()

    def op_JP(self, instr):
        self.registers.pc = instr.nnn

    def op_CALL(self, instr):
        self.registers.push(self.registers.pc)
        self.registers.pc = instr.nnn

    def op_SE_Vx_kk(self, instr):
        if self.registers.V[instr.x] == instr.kk:
            self.registers.pc += 2

    def op_SNE_Vx_kk(self, instr):
        if self.registers.V[instr.x] != instr.kk:
            self.registers.pc += 2

    def op_SE_Vx_Vy(self, instr):
        V = self.registers.V
        if V[instr.x] == V[instr.y]:
            self.registers.pc += 2

    def op_SNE_Vx_Vy(self, instr):
        V = self.registers.V
        if V[instr.x] != V[instr.y]:
            self.registers.pc += 2

    def op_LD_Vx_kk(self, instr):
        self.registers.V[instr.x] = instr.kk

    def op_ADD_Vx_kk(self, instr):
        V = self.registers.V
        V[instr.x] = (V[instr.x] + instr.kk) & 0xFF

    def op_LD_Vx_Vy(self, instr):
        V = self.registers.V
        V[instr.x] = V[instr.y]

    def op_OR(self, instr):
        V = self.registers.V
        V[instr.x] = V[instr.x] | V[instr.y]
        if self.quirks.logic_resets_vf:
            V[0xF] = 0

    def op_AND(self, instr):
        V = self.registers.V
        V[instr.x] = V[instr.x] & V[instr.y]
        if self.quirks.logic_resets_vf:
            V[0xF] = 0

    def op_XOR(self, instr):
        V = self.registers.V
        V[instr.x] = V[instr.x] ^ V[instr.y]
        if self.quirks.logic_resets_vf:
            V[0xF] = 0

    def op_ADD(self, instr):
        V = self.registers.V
        total = V[instr.x] + V[instr.y]
        V[instr.x] = total & 0xFF
        V[0xF] = 1 if total > 0xFF else 0

    def op_SUB(self, instr):
        V = self.registers.V
        vx, vy = V[instr.x], V[instr.y]
        V[instr.x] = (vx - vy) & 0xFF
        V[0xF] = 1 if vx >= vy else 0

    def op_SUBN(self, instr):
        V = self.registers.V
        vx, vy = V[instr.x], V[instr.y]
        V[instr.x] = (vy - vx) & 0xFF
        V[0xF] = 1 if vy >= vx else 0

    def _shift_source(self, instr):
        V = self.registers.V
        return V[instr.y] if self.quirks.shift_uses_vy else V[instr.x]

    def op_SHR(self, instr):
        src = self._shift_source(instr)
        V = self.registers.V
        V[instr.x] = src >> 1
        V[0xF] = src & 0x1

    def op_SHL(self, instr):
        src = self._shift_source(instr)
        V = self.registers.V
        V[instr.x] = (src << 1) & 0xFF
        V[0xF] = (src >> 7) & 0x1

    def op_LD_I(self, instr):
        self.registers.I = instr.nnn

    def op_JP_V0(self, instr):
        reg = (instr.nnn >> 8) & 0xF if self.quirks.jump_uses_vx else 0
        self.registers.pc = instr.nnn + self.registers.V[reg]

    def op_RND(self, instr):
        self.registers.V[instr.x] = self.random.getrandbits(8) & instr.kk

    def op_DRW(self, instr):
        regs = self.registers
        x, y = regs.V[instr.x], regs.V[instr.y]
        sprite = self.memory.read_block(regs.I, instr.n)
        collided = self.display.draw_sprite(x, y, sprite)
        regs.V[0xF] = 1 if collided else 0

    def op_SKP(self, instr):
        if self.keypad.is_pressed(self.registers.V[instr.x] & 0xF):
            self.registers.pc += 2

    def op_SKNP(self, instr):
        if not self.keypad.is_pressed(self.registers.V[instr.x] & 0xF):
            self.registers.pc += 2

    def op_LD_Vx_DT(self, instr):
        self.registers.V[instr.x] = self.timers.delay

    def op_WAITKEY(self, instr):
        # stay on this instruction until a key goes down, see _resume_wait
        self.registers.pc -= 2
        self.waiting_register = instr.x
        self.keypad.begin_wait()

    def op_LD_DT_Vx(self, instr):
        self.timers.delay = self.registers.V[instr.x]

    def op_LD_ST_Vx(self, instr):
        self.timers.sound = self.registers.V[instr.x]

    def op_ADD_I_Vx(self, instr):
        regs = self.registers
        regs.I = (regs.I + regs.V[instr.x]) & 0xFFFF

    def op_FONT(self, instr):
        self.registers.I = self.font_address(self.registers.V[instr.x])

    def op_BCD(self, instr):
        regs = self.registers
        val = regs.V[instr.x]
        self.memory.write_block(regs.I, (val // 100, (val // 10) % 10, val % 10))

    def op_STORE(self, instr):
        regs = self.registers
        self.memory.write_block(regs.I, regs.V[:instr.x + 1])
        if self.quirks.memory_increments_i:
            regs.I = (regs.I + instr.x + 1) & 0xFFFF

    def op_LOAD(self, instr):
        regs = self.registers
        regs.V[:instr.x + 1] = self.memory.read_block(regs.I, instr.x + 1)
        if self.quirks.memory_increments_i:
            regs.I = (regs.I + instr.x + 1) & 0xFFFF
