import random

import pytest

from chip8 import Chip8, StepResult
from chip8.constants import FONT_START, FONTSET
from chip8.errors import OutOfBounds, ProgramTooLarge, StackOverflow, StackUnderflow, UnknownOpcode


# ---- Lifecycle ----

def test_power_on_state() -> None:
    machine = Chip8()
    regs = machine.registers
    assert regs.pc == 0x200
    assert regs.sp == 0
    assert regs.V == [0] * 16
    assert machine.timers.delay == 0 and machine.timers.sound == 0
    assert not machine.display.snapshot().any()
    assert machine.memory.read_block(FONT_START, 80) == bytes(FONTSET)


def test_font_digit_zero_sprite() -> None:
    machine = Chip8()
    addr = machine.font_address(0)
    sprite = [machine.memory.read_byte(addr + i) for i in range(5)]
    assert sprite == [0xF0, 0x90, 0x90, 0x90, 0xF0]


def test_load_copies_program_and_resets(make_machine) -> None:
    machine = make_machine(0x6A05)
    machine.registers.V[1] = 9
    machine.timers.delay = 4
    machine.display.draw_sprite(0, 0, [0xFF])

    machine.load(b"\x12\x34\x56")

    assert machine.memory.read_block(0x200, 3) == b"\x12\x34\x56"
    assert machine.memory.read_byte(0x203) == 0
    assert machine.registers.V[1] == 0
    assert machine.timers.delay == 0
    assert not machine.display.snapshot().any()


def test_load_accepts_maximum_size() -> None:
    machine = Chip8()
    assert machine.load(bytes([0xAA]) * (4096 - 512)) == 3584
    assert machine.memory.read_byte(0xFFF) == 0xAA


def test_load_rejects_oversized_program(make_machine) -> None:
    machine = make_machine(0x6A05)
    with pytest.raises(ProgramTooLarge) as exc:
        machine.load(bytes(4096 - 512 + 1))
    assert exc.value.size == 3585
    # previous program untouched
    assert machine.memory.read_word(0x200) == 0x6A05


# ---- Control flow ----

def test_jump(make_machine) -> None:
    machine = make_machine(0x1ABC)
    machine.step()
    assert machine.registers.pc == 0xABC


def test_call_then_return(make_machine) -> None:
    # 0x200: CALL 0x206 ; 0x202: - ; 0x204: - ; 0x206: RET
    machine = make_machine(0x2206, 0x0000, 0x0000, 0x00EE)
    machine.step()
    assert machine.registers.pc == 0x206
    assert machine.registers.stack == [0x202]
    machine.step()
    assert machine.registers.pc == 0x202
    assert machine.registers.sp == 0


def test_seventeenth_call_overflows(make_machine) -> None:
    # CALL 0x200 forever
    machine = make_machine(0x2200)
    for _ in range(16):
        machine.step()
    with pytest.raises(StackOverflow):
        machine.step()
    assert machine.registers.pc == 0x200
    assert machine.registers.sp == 16


def test_return_with_empty_stack(make_machine) -> None:
    machine = make_machine(0x00EE)
    with pytest.raises(StackUnderflow):
        machine.step()
    assert machine.registers.pc == 0x200


@pytest.mark.parametrize(
    "word, vx, vy, skipped",
    [
        (0x3A42, 0x42, 0, True),
        (0x3A42, 0x41, 0, False),
        (0x4A42, 0x41, 0, True),
        (0x4A42, 0x42, 0, False),
        (0x5AB0, 7, 7, True),
        (0x5AB0, 7, 8, False),
        (0x9AB0, 7, 8, True),
        (0x9AB0, 7, 7, False),
    ],
)
def test_conditional_skips(make_machine, word, vx, vy, skipped) -> None:
    machine = make_machine(word)
    machine.registers.V[0xA] = vx
    machine.registers.V[0xB] = vy
    machine.step()
    assert machine.registers.pc == (0x204 if skipped else 0x202)


def test_sys_is_ignored(make_machine) -> None:
    machine = make_machine(0x0123)
    assert machine.step() is StepResult.EXECUTED
    assert machine.registers.pc == 0x202


def test_unknown_opcode_is_fatal_and_leaves_pc(make_machine) -> None:
    machine = make_machine(0x5121)
    with pytest.raises(UnknownOpcode):
        machine.step()
    assert machine.registers.pc == 0x200


def test_running_off_the_end_of_memory(make_machine) -> None:
    machine = make_machine(0x1FFF)
    machine.step()
    with pytest.raises(OutOfBounds):
        machine.step()


# ---- Loads and arithmetic ----

def test_load_and_add_immediate(make_machine) -> None:
    machine = make_machine(0x6AFE, 0x7A03)
    machine.registers.V[0xF] = 0x55
    machine.run(2)
    assert machine.registers.V[0xA] == 0x01
    # 7xkk never touches VF
    assert machine.registers.V[0xF] == 0x55


def test_register_copy_and_bitwise(make_machine) -> None:
    machine = make_machine(0x8120, 0x8131, 0x8142, 0x8153)
    V = machine.registers.V
    V[2], V[3], V[4], V[5] = 0b1100, 0b0011, 0b0110, 0b1111
    machine.step()
    assert V[1] == 0b1100
    machine.step()
    assert V[1] == 0b1111
    machine.step()
    assert V[1] == 0b0110
    machine.step()
    assert V[1] == 0b1001


@pytest.mark.parametrize(
    "vx, vy, result, flag",
    [(0xFF, 0x01, 0x00, 1), (0x01, 0x01, 0x02, 0), (0x80, 0x80, 0x00, 1)],
)
def test_add_with_carry(make_machine, vx, vy, result, flag) -> None:
    machine = make_machine(0x8124)
    machine.registers.V[1], machine.registers.V[2] = vx, vy
    machine.step()
    assert machine.registers.V[1] == result
    assert machine.registers.V[0xF] == flag


@pytest.mark.parametrize(
    "vx, vy, result, flag",
    [(0x01, 0x02, 0xFF, 0), (0x02, 0x01, 0x01, 1), (0x05, 0x05, 0x00, 1)],
)
def test_subtract_with_borrow(make_machine, vx, vy, result, flag) -> None:
    machine = make_machine(0x8125)
    machine.registers.V[1], machine.registers.V[2] = vx, vy
    machine.step()
    assert machine.registers.V[1] == result
    assert machine.registers.V[0xF] == flag


@pytest.mark.parametrize(
    "vx, vy, result, flag",
    [(0x02, 0x01, 0xFF, 0), (0x01, 0x02, 0x01, 1)],
)
def test_reverse_subtract(make_machine, vx, vy, result, flag) -> None:
    machine = make_machine(0x8127)
    machine.registers.V[1], machine.registers.V[2] = vx, vy
    machine.step()
    assert machine.registers.V[1] == result
    assert machine.registers.V[0xF] == flag


def test_flag_wins_when_vf_is_the_destination(make_machine) -> None:
    # ADD VF, V1 with overflow: result is discarded in favour of the carry
    machine = make_machine(0x8F14)
    machine.registers.V[0xF] = 0xFF
    machine.registers.V[1] = 0x03
    machine.step()
    assert machine.registers.V[0xF] == 1


def test_vf_as_operand_is_read_before_flag_write(make_machine) -> None:
    # SUB V1, VF: VF must be consumed before it becomes the borrow flag
    machine = make_machine(0x81F5)
    machine.registers.V[1] = 0x10
    machine.registers.V[0xF] = 0x01
    machine.step()
    assert machine.registers.V[1] == 0x0F
    assert machine.registers.V[0xF] == 1


def test_random_is_masked(make_machine) -> None:
    machine = Chip8(rng=random.Random(1234))
    machine.load(bytes([0xC1, 0x0F] * 20))
    for _ in range(20):
        machine.step()
        assert machine.registers.V[1] <= 0x0F


def test_random_zero_mask(make_machine) -> None:
    machine = make_machine(0xC100)
    machine.registers.V[1] = 0xAA
    machine.step()
    assert machine.registers.V[1] == 0


# ---- Index and memory ----

def test_load_and_add_index(make_machine) -> None:
    machine = make_machine(0xA300, 0xF11E)
    machine.registers.V[1] = 0x10
    machine.run(2)
    assert machine.registers.I == 0x310


def test_font_address_instruction(make_machine) -> None:
    machine = make_machine(0xF129)
    machine.registers.V[1] = 0xA
    machine.step()
    assert machine.registers.I == FONT_START + 0xA * 5


def test_bcd(make_machine) -> None:
    machine = make_machine(0xA300, 0xF133)
    machine.registers.V[1] = 254
    machine.run(2)
    assert machine.memory.read_block(0x300, 3) == bytes([2, 5, 4])


def test_bcd_out_of_range_writes_nothing(make_machine) -> None:
    machine = make_machine(0xF133)
    machine.registers.I = 0xFFE
    with pytest.raises(OutOfBounds):
        machine.step()
    assert machine.memory.read_block(0xFFE, 2) == b"\x00\x00"
    assert machine.registers.pc == 0x200


def test_store_then_load_round_trip(make_machine) -> None:
    machine = make_machine(0xA400, 0xF355, 0xA400, 0xF365)
    V = machine.registers.V
    V[0:4] = [0x11, 0x22, 0x33, 0x44]
    V[4] = 0x99
    machine.run(2)
    assert machine.memory.read_block(0x400, 5) == bytes([0x11, 0x22, 0x33, 0x44, 0x00])
    V[0:4] = [0, 0, 0, 0]
    machine.run(2)
    assert V[0:5] == [0x11, 0x22, 0x33, 0x44, 0x99]


# ---- Display ----

def test_draw_font_digit_and_collision(make_machine) -> None:
    # LD F, V0 ; DRW V1, V2, 5 ; DRW V1, V2, 5
    machine = make_machine(0xF029, 0xD125, 0xD125)
    machine.registers.V[1], machine.registers.V[2] = 8, 4
    machine.run(2)
    grid = machine.display.snapshot()
    assert list(grid[4, 8:12]) == [1, 1, 1, 1]
    assert list(grid[5, 8:12]) == [1, 0, 0, 1]
    assert machine.registers.V[0xF] == 0
    machine.step()
    assert machine.registers.V[0xF] == 1
    assert not machine.display.snapshot().any()


def test_draw_reads_coordinates_before_setting_flag(make_machine) -> None:
    # DRW VF, VF, 1 with I at the "0" glyph
    machine = make_machine(0xDFF1)
    machine.registers.I = machine.font_address(0)
    machine.registers.V[0xF] = 3
    machine.step()
    assert machine.display.pixel(3, 3)
    assert machine.registers.V[0xF] == 0


def test_clear_screen(make_machine) -> None:
    machine = make_machine(0x00E0)
    machine.display.draw_sprite(0, 0, [0xFF] * 4)
    machine.step()
    assert not machine.display.snapshot().any()
    assert machine.display.dirty


# ---- Input ----

def test_skip_if_key_pressed(make_machine) -> None:
    machine = make_machine(0xE19E, 0x0000, 0xE19E)
    machine.registers.V[1] = 0x7
    machine.keypad.set_key(0x7, True)
    machine.step()
    assert machine.registers.pc == 0x204
    machine.keypad.set_key(0x7, False)
    machine.step()
    assert machine.registers.pc == 0x206


def test_skip_if_key_not_pressed(make_machine) -> None:
    machine = make_machine(0xE1A1, 0x0000, 0xE1A1)
    machine.registers.V[1] = 0x3
    machine.step()
    assert machine.registers.pc == 0x204
    machine.keypad.set_key(0x3, True)
    machine.step()
    assert machine.registers.pc == 0x206


def test_key_wait_blocks_until_press(make_machine) -> None:
    machine = make_machine(0xF50A, 0x6101)
    for _ in range(3):
        assert machine.step() is StepResult.AWAITING_INPUT
        assert machine.registers.pc == 0x200
        assert machine.awaiting_key

    machine.keypad.set_key(0x7, True)
    assert machine.step() is StepResult.EXECUTED
    assert machine.registers.V[5] == 0x7
    assert machine.registers.pc == 0x202
    assert not machine.awaiting_key

    machine.step()
    assert machine.registers.V[1] == 0x01


def test_key_wait_ignores_key_already_held(make_machine) -> None:
    machine = make_machine(0xF50A)
    machine.keypad.set_key(0x2, True)
    assert machine.step() is StepResult.AWAITING_INPUT
    assert machine.step() is StepResult.AWAITING_INPUT
    machine.keypad.set_key(0x2, False)
    machine.keypad.set_key(0x2, True)
    assert machine.step() is StepResult.EXECUTED
    assert machine.registers.V[5] == 0x2


def test_timers_keep_running_during_key_wait(make_machine) -> None:
    machine = make_machine(0xF50A)
    machine.timers.delay = 2
    machine.step()
    machine.tick()
    machine.step()
    machine.tick()
    assert machine.timers.delay == 0
    assert machine.awaiting_key


def test_run_stops_on_key_wait(make_machine) -> None:
    machine = make_machine(0x6001, 0x6102, 0xF20A, 0x6303)
    assert machine.run(10) == 2
    assert machine.awaiting_key
    assert machine.registers.pc == 0x204


# ---- Timers ----

def test_timer_instructions(make_machine) -> None:
    machine = make_machine(0x6105, 0xF115, 0xF118, 0xF207)
    machine.run(3)
    assert machine.timers.delay == 5
    assert machine.timers.sound == 5
    assert machine.timers.sound_active
    machine.tick()
    machine.step()
    assert machine.registers.V[2] == 4


def test_timer_ticks_are_independent_of_steps(make_machine) -> None:
    machine = make_machine(*([0x7001] * 10))
    machine.timers.delay = 5
    machine.run(10)
    assert machine.timers.delay == 5
    for _ in range(6):
        machine.tick()
    assert machine.timers.delay == 0


def test_every_op_has_a_handler() -> None:
    from chip8.instructions import Op
    assert set(Chip8().funcmap) == set(Op)


def test_cycle_count_counts_completed_instructions(make_machine) -> None:
    machine = make_machine(0x6001, 0xF10A, 0x6202)
    machine.step()
    machine.step()
    machine.step()  # still waiting
    assert machine.cycle_count == 1
    machine.keypad.set_key(0x4, True)
    machine.step()
    machine.step()
    assert machine.cycle_count == 3
    machine.reset()
    assert machine.cycle_count == 0
