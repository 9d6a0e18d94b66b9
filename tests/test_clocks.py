import pytest

from perfaware.clocks import Clocks, calc_clocks
from perfaware.decode import decode_next_instr
from perfaware.stream import ByteStream


def decode(data):
    return decode_next_instr(ByteStream(bytes(data)))


def test_total_sums_parts():
    assert Clocks(2, 3, 5).total() == 10
    assert Clocks().total() == 0


def test_mov_reg_reg():
    assert calc_clocks(decode([0x89, 0xD9]), False) == Clocks(2, 0, 0)


def test_mov_accumulator_from_memory():
    assert calc_clocks(decode([0x8B, 0x06, 0x05, 0x00]), False) == Clocks(10)


def test_mov_other_register_from_memory():
    assert calc_clocks(decode([0x8B, 0x2E, 0x05, 0x00]), False) == Clocks(8)


def test_mov_memory_from_register():
    assert calc_clocks(decode([0x89, 0x2E, 0x05, 0x00]), False) == Clocks(9)


def test_mov_immediate_to_register():
    assert calc_clocks(decode([0xB9, 0x0C, 0x00]), False) == Clocks(4)


def test_mov_immediate_to_memory():
    assert calc_clocks(decode([0xC7, 0x06, 0x05, 0x00, 0x07, 0x00]), False) == Clocks(10)


@pytest.mark.parametrize("data", [
    [0x83, 0xC6, 0x02],
    [0x29, 0xD9],
    [0x39, 0xD9],
    [0x75, 0xFE],
    [0xE2, 0xFE],
])
def test_arith_and_jumps(data):
    clocks = calc_clocks(decode(data), True)
    assert clocks == Clocks(4)
    assert clocks.total() == clocks.base


def test_same_estimate_for_8086_and_8088():
    instr = decode([0x89, 0xD9])
    assert calc_clocks(instr, True) == calc_clocks(instr, False)


def test_unhandled_instruction_gives_zero(capsys):
    clocks = calc_clocks(decode([0x41]), False)
    assert clocks == Clocks(0, 0, 0)
    assert "unhandled instruction 'inc'" in capsys.readouterr().err