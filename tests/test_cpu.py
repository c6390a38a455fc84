"""Instruction-level tests for the interpreter.

Programs are hand-assembled 16-bit words loaded at 0x200.
"""

import random

import pytest

from chip8vm.cpu import Chip8, Quirks
from chip8vm.decode import Op
from chip8vm.errors import (
    AddressOutOfRange,
    ImageTooLarge,
    StackOverflow,
    StackUnderflow,
    UnknownOpcode,
)

SAMPLES = list(range(0, 256, 17)) + [1, 127, 128, 254]


def assemble(*words):
    out = bytearray()
    for word in words:
        out += bytes([word >> 8, word & 0xFF])
    return bytes(out)


def run(*words, cycles=None, **kwargs):
    machine = Chip8(assemble(*words), **kwargs)
    machine.run(len(words) if cycles is None else cycles)
    return machine


def test_end_to_end_add_program():
    machine = run(0xA200, 0x6005, 0x610A, 0x8014)
    assert machine.registers[0] == 15
    assert machine.registers[0xF] == 0
    assert machine.index == 0x200
    assert machine.pc == 0x200 + 8


def test_initial_state():
    machine = Chip8()
    state = machine.snapshot()
    assert state.pc == 0x200
    assert state.registers == (0,) * 16
    assert state.index == 0
    assert state.sp == 0
    assert state.delay_timer == state.sound_timer == 0
    assert not machine.display_snapshot().any()


def test_image_too_large_prevents_construction():
    with pytest.raises(ImageTooLarge):
        Chip8(bytes(4096 - 0x200 + 1))


class TestFlow:
    def test_jump(self):
        machine = run(0x1300)
        assert machine.pc == 0x300

    def test_call_and_return(self):
        # 200: CALL 206 / 202: V1=1 / 204: JP 204 / 206: V0=5 / 208: RET
        machine = run(0x2206, 0x6101, 0x1204, 0x6005, 0x00EE, cycles=1)
        assert machine.pc == 0x206
        assert machine.sp == 1
        assert machine.snapshot().stack == (0x202,)
        machine.run(3)
        assert machine.pc == 0x204
        assert machine.sp == 0
        assert machine.registers[0] == 5
        assert machine.registers[1] == 1

    def test_return_on_empty_stack(self):
        machine = Chip8(assemble(0x00EE))
        with pytest.raises(StackUnderflow):
            machine.step()

    def test_seventeenth_nested_call_overflows(self):
        machine = Chip8(assemble(0x2200))
        machine.run(16)
        assert machine.sp == 16
        with pytest.raises(StackOverflow) as exc:
            machine.step()
        assert exc.value.pc == 0x200

    def test_jump_with_v0_offset(self):
        machine = run(0x6004, 0x6102, 0xB300)
        assert machine.pc == 0x304

    def test_jump_with_vx_quirk(self):
        machine = run(0x6004, 0x6302, 0xB300, quirks=Quirks(jump_uses_vx=True))
        assert machine.pc == 0x302

    def test_jump_offset_wraps(self):
        machine = run(0x60FF, 0xBFFF)
        assert machine.pc == (0xFFF + 0xFF) & 0xFFF

    def test_sys_is_ignored(self):
        machine = run(0x0123)
        assert machine.pc == 0x202

    def test_fetch_past_end_of_memory(self):
        machine = run(0x1FFF)
        with pytest.raises(AddressOutOfRange):
            machine.step()

    def test_unknown_opcode_reports_value_and_pc(self):
        machine = Chip8(assemble(0x6001, 0xFFFF))
        machine.step()
        with pytest.raises(UnknownOpcode) as exc:
            machine.step()
        assert exc.value.opcode == 0xFFFF
        assert exc.value.pc == 0x202
        assert machine.pc == 0x202


class TestSkips:
    @pytest.mark.parametrize("words,skipped", [
        ((0x6012, 0x3012), True),
        ((0x6012, 0x3013), False),
        ((0x6012, 0x4013), True),
        ((0x6012, 0x4012), False),
        ((0x6012, 0x6112, 0x5010), True),
        ((0x6012, 0x6113, 0x5010), False),
        ((0x6012, 0x6113, 0x9010), True),
        ((0x6012, 0x6112, 0x9010), False),
    ])
    def test_skip_family(self, words, skipped):
        machine = run(*words)
        expected = 0x200 + 2 * len(words) + (2 if skipped else 0)
        assert machine.pc == expected

    def test_skip_if_key_pressed(self):
        machine = Chip8(assemble(0x6015, 0xE09E, 0xE09E))
        machine.step()
        machine.step()
        assert machine.pc == 0x204
        machine.press_key(0x5)
        machine.step()
        assert machine.pc == 0x208

    def test_skip_if_key_not_pressed(self):
        machine = Chip8(assemble(0x6003, 0xE0A1, 0x0000, 0xE0A1))
        machine.step()
        machine.step()
        assert machine.pc == 0x206
        machine.press_key(0x3)
        machine.step()
        assert machine.pc == 0x208


class TestLoadsAndAlu:
    def test_add_immediate_wraps_without_flag(self):
        machine = run(0x60FF, 0x6F07, 0x7002)
        assert machine.registers[0] == 1
        assert machine.registers[0xF] == 7

    @pytest.mark.parametrize("sub,expected", [(0x0, 0x0F), (0x1, 0x3F), (0x2, 0x0C), (0x3, 0x33)])
    def test_logic_ops(self, sub, expected):
        machine = run(0x603C, 0x610F, 0x8010 | sub)
        assert machine.registers[0] == expected

    @pytest.mark.parametrize("a", SAMPLES)
    @pytest.mark.parametrize("b", SAMPLES)
    def test_add_sets_carry(self, a, b):
        machine = run(0x6000 | a, 0x6100 | b, 0x8014)
        assert machine.registers[0] == (a + b) % 256
        assert machine.registers[0xF] == (1 if a + b > 255 else 0)

    @pytest.mark.parametrize("a", SAMPLES)
    @pytest.mark.parametrize("b", SAMPLES)
    def test_sub_sets_not_borrow(self, a, b):
        machine = run(0x6000 | a, 0x6100 | b, 0x8015)
        assert machine.registers[0] == (a - b) % 256
        assert machine.registers[0xF] == (1 if a >= b else 0)

    @pytest.mark.parametrize("a", SAMPLES)
    @pytest.mark.parametrize("b", SAMPLES)
    def test_subn(self, a, b):
        machine = run(0x6000 | a, 0x6100 | b, 0x8017)
        assert machine.registers[0] == (b - a) % 256
        assert machine.registers[0xF] == (1 if b >= a else 0)

    @pytest.mark.parametrize("a", SAMPLES)
    def test_shr_flag_is_lsb_before_shift(self, a):
        machine = run(0x6000 | a, 0x8006)
        assert machine.registers[0] == a >> 1
        assert machine.registers[0xF] == a & 1

    @pytest.mark.parametrize("a", SAMPLES)
    def test_shl_flag_is_msb_before_shift(self, a):
        machine = run(0x6000 | a, 0x800E)
        assert machine.registers[0] == (a << 1) & 0xFF
        assert machine.registers[0xF] == a >> 7

    def test_shift_ignores_vy_by_default(self):
        machine = run(0x6004, 0x6181, 0x8016)
        assert machine.registers[0] == 2
        assert machine.registers[1] == 0x81
        assert machine.registers[0xF] == 0

    def test_shift_vy_quirk(self):
        machine = run(0x6004, 0x6181, 0x8016, quirks=Quirks(shift_uses_vy=True))
        assert machine.registers[0] == 0x40
        assert machine.registers[0xF] == 1

    def test_flag_wins_when_vf_is_destination(self):
        machine = run(0x6F10, 0x6120, 0x8F14)
        assert machine.registers[0xF] == 0

    def test_random_is_masked(self):
        seed = 1234
        expected = random.Random(seed).getrandbits(8) & 0x0F
        machine = run(0xC30F, rng=random.Random(seed))
        assert machine.registers[3] == expected

    def test_random_with_zero_mask(self):
        machine = run(0xC300)
        assert machine.registers[3] == 0


class TestIndexAndMemory:
    def test_set_index(self):
        machine = run(0xAFFE)
        assert machine.index == 0xFFE

    def test_add_to_index_masks_and_keeps_vf(self):
        machine = run(0xAFFF, 0x6002, 0x6F09, 0xF01E)
        assert machine.index == 0x001
        assert machine.registers[0xF] == 9

    def test_font_address(self):
        machine = run(0x601A, 0xF029)
        assert machine.index == 0xA * 5
        assert machine.read_memory(machine.index, 5) == bytes([0xF0, 0x90, 0xF0, 0x90, 0x90])

    def test_bcd_of_255(self):
        machine = run(0xA300, 0x60FF, 0xF033)
        assert machine.read_memory(0x300, 3) == bytes([2, 5, 5])

    def test_bcd_of_small_value(self):
        machine = run(0xA300, 0x6007, 0xF033)
        assert machine.read_memory(0x300, 3) == bytes([0, 0, 7])

    def test_store_registers_up_to_x_only(self):
        machine = run(0x6011, 0x6122, 0x6233, 0x6344, 0xA300, 0xF255)
        assert machine.read_memory(0x300, 4) == bytes([0x11, 0x22, 0x33, 0x00])
        assert machine.index == 0x300

    def test_load_registers_up_to_x_only(self):
        # 200: I=20A / 202: V3=EE / 204: LD V1,[I] / 206: JP 206 / 20A: data
        machine = run(0xA20A, 0x63EE, 0xF165, 0x1206, 0x0000, 0xABCD, 0xEF00, cycles=3)
        assert machine.registers[:4] == (0xAB, 0xCD, 0x00, 0xEE)
        assert machine.index == 0x20A


class TestDraw:
    # 200: I=20A / 202: V0=63 / 204: V1=31 / 206: DRW / 208: DRW / 20A: sprite 0xFF
    PROGRAM = (0xA20A, 0x603F, 0x611F, 0xD011, 0xD011, 0xFF00)

    def test_draw_wraps_at_corner(self):
        machine = run(*self.PROGRAM, cycles=4)
        cells = machine.display_snapshot()
        assert machine.pixel(63, 31)
        assert machine.pixel(0, 31)
        assert cells[31].sum() == 8
        assert cells.sum() == 8
        assert machine.registers[0xF] == 0

    def test_second_draw_collides_and_restores(self):
        machine = run(*self.PROGRAM, cycles=5)
        assert machine.registers[0xF] == 1
        assert not machine.display_snapshot().any()

    def test_collision_flag_cleared_by_next_draw(self):
        # on, off (collision), on again: the last draw resets VF
        machine = run(0xA20C, 0x6000, 0xD001, 0xD001, 0xD001, 0xD001, 0x8000, cycles=5)
        assert machine.registers[0xF] == 0
        assert machine.pixel(0, 0)

    def test_draw_at_vf_coordinates(self):
        # 200: I=000 / 202: VF=10 / 204: V1=0 / 206: DRW VF, V1, 1
        machine = run(0xA000, 0x6F0A, 0x6100, 0xDF11)
        assert machine.pixel(10, 0)
        assert not machine.pixel(0, 0)
        assert machine.registers[0xF] == 0

    def test_draw_at_vf_row(self):
        machine = run(0xA000, 0x6F05, 0x6003, 0xD0F1)
        assert machine.pixel(3, 5)
        assert not machine.pixel(3, 0)

    def test_clear_screen(self):
        machine = run(0xF029, 0xD005, 0x00E0)
        assert not machine.display_snapshot().any()

    def test_display_changed_indicator(self):
        machine = Chip8(assemble(0xF029, 0xD005))
        assert machine.display_changed()
        machine.step()
        assert not machine.display_changed()
        machine.step()
        assert machine.display_changed()


class TestKeyWait:
    def test_waits_without_moving_pc(self):
        machine = Chip8(assemble(0xF30A, 0x6001))
        for _ in range(3):
            machine.step()
            assert machine.pc == 0x200
            assert machine.awaiting_key
        machine.press_key(0x7)
        machine.step()
        assert machine.registers[3] == 0x7
        assert machine.pc == 0x202
        assert not machine.awaiting_key

    def test_key_already_down_completes_immediately(self):
        machine = Chip8(assemble(0xF30A))
        machine.set_keys([False] * 10 + [True] + [False] * 5)
        machine.step()
        assert machine.registers[3] == 0xA
        assert machine.pc == 0x202

    def test_timers_keep_running_while_waiting(self):
        machine = Chip8(assemble(0x6005, 0xF015, 0xF30A))
        machine.run(3)
        machine.tick_timers()
        machine.step()
        assert machine.delay_timer == 4
        assert machine.pc == 0x204


class TestTimers:
    def test_delay_timer_roundtrip_through_register(self):
        machine = run(0x6009, 0xF015, 0xF107)
        assert machine.delay_timer == 9
        assert machine.registers[1] == 9

    def test_timers_are_not_touched_by_steps(self):
        machine = Chip8(assemble(0x6009, 0xF015, 0xF018, 0x1206))
        machine.run(50)
        assert machine.delay_timer == 9
        assert machine.sound_timer == 9

    def test_sound_stop_edge(self):
        machine = run(0x6002, 0xF018)
        assert machine.sound_active
        assert machine.tick_timers() is False
        assert machine.tick_timers() is True
        assert not machine.sound_active


def test_every_operation_has_a_handler():
    machine = Chip8()
    assert set(machine.funcmap) == set(Op) - {Op.UNKNOWN}


def test_snapshot_is_detached():
    machine = Chip8(assemble(0x6001))
    state = machine.snapshot()
    machine.step()
    assert state.registers[0] == 0
    assert machine.snapshot().registers[0] == 1
    assert state.opcode == 0
    assert machine.opcode == 0x6001
