from perfaware.clocks import Clocks
from perfaware.decode import decode_next_instr
from perfaware.instr import RegType
from perfaware.printer import (
    format_clocks,
    format_instr,
    format_state_diff,
    format_state_registers,
)
from perfaware.simulate import Flag, State
from perfaware.stream import ByteStream


def decode(code):
    return decode_next_instr(ByteStream(bytes(code)))


def test_register_to_register_mov():
    assert format_instr(decode([0x89, 0xD9])) == "mov cx, bx"


def test_computed_address_with_negative_displacement():
    assert format_instr(decode([0x8B, 0x41, 0xFE])) == "mov ax, [bx + di - 2]"


def test_memory_destination_gets_width_prefix():
    text = format_instr(decode([0xC7, 0x06, 0xE8, 0x03, 0x01, 0x00]))
    assert text.startswith("mov word ")
    assert "[+1000]" in text


def test_segment_override_is_printed():
    text = format_instr(decode([0x26, 0x8B, 0x07]))
    assert "es:" in text
    assert text.startswith("mov ax, ")


def test_jump_is_relative_to_instruction_start():
    instr = decode([0x75, 0xFE])
    assert format_instr(instr) == f"jne ${instr.ops[0].ip_inc + instr.size:+d}"


def test_rep_prefix():
    assert format_instr(decode([0xF3, 0xA4])).startswith("rep movsb")


def test_identical_states_have_empty_diff():
    assert format_state_diff(State(), State()) == ""


def test_diff_lists_register_ip_and_flags():
    old = State()
    new = State()
    new.regs[RegType.C] = 0xC
    new.ip = 3
    new.flags[Flag.CARRY] = 1
    text = format_state_diff(old, new)
    assert "cx:0x0->0xc " in text
    assert "ip:0x0->0x3 " in text
    assert text.endswith("flags:->C")


def test_diff_can_skip_ip():
    new = State()
    new.ip = 3
    assert format_state_diff(State(), new, skip_ip=True) == ""


def test_registers_skip_zero_values():
    state = State()
    assert format_state_registers(state, skip_ip=True) == ""
    state.regs[RegType.B] = 1
    text = format_state_registers(state, skip_ip=True)
    assert text.strip().startswith("bx:")
    assert "ip:" not in text


def test_registers_include_flags():
    state = State()
    state.flags[Flag.ZERO] = 1
    state.flags[Flag.SIGN] = 1
    text = format_state_registers(state)
    assert "flags: ZS\n" in text
    assert "ip: 0x0000 (0)" in text


def test_clocks_without_parts():
    assert format_clocks(Clocks(4), 4) == "Clocks: +4 = 4 | "


def test_clocks_with_ea_part():
    text = format_clocks(Clocks(8, 5), 20)
    assert "ea)" in text
    assert text.endswith(" | ")