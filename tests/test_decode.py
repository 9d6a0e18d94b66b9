import pytest

from perfaware.decode import DecodeError, decode_instructions, decode_next_instr
from perfaware.instr import EaType, InstrType, OperandType, Prefix, Reg, RegMode, RegType
from perfaware.stream import ByteStream


def decode_one(data):
    stream = ByteStream(bytes(data))
    instr = decode_next_instr(stream)
    assert stream.pos == instr.size
    return instr


def test_mov_reg_to_reg():
    instr = decode_one([0x89, 0xD9])
    assert instr.mnemonic == "mov"
    assert instr.kind == InstrType.MOV
    assert instr.ops[0].reg == Reg(RegType.C, RegMode.X)
    assert instr.ops[1].reg == Reg(RegType.B, RegMode.X)
    assert instr.size == 2


def test_mov_immediate_word():
    instr = decode_one([0xB9, 0x0C, 0x00])
    assert instr.ops[0].reg == Reg(RegType.C, RegMode.X)
    assert instr.ops[1].kind == OperandType.DATA
    assert instr.ops[1].data == 0x0C
    assert instr.size == 3
    assert instr.w


def test_mov_immediate_byte_is_not_sign_extended():
    instr = decode_one([0xB1, 0xF4])
    assert instr.ops[0].reg == Reg(RegType.C, RegMode.L)
    assert instr.ops[1].data == 0xF4
    assert not instr.w


def test_d_flag_swaps_operands_and_computes_address():
    instr = decode_one([0x8B, 0x56, 0x00])
    assert instr.ops[0].reg == Reg(RegType.D, RegMode.X)
    ea = instr.ops[1].ea
    assert ea.kind == EaType.COMPUTE
    assert ea.compute_addr.base_reg == Reg(RegType.BP, RegMode.X)
    assert ea.compute_addr.index_reg is None
    assert ea.compute_addr.displ == 0


def test_direct_address():
    instr = decode_one([0x8B, 0x2E, 0x05, 0x00])
    assert instr.ops[0].reg == Reg(RegType.BP, RegMode.X)
    assert instr.ops[1].ea.kind == EaType.DIRECT
    assert instr.ops[1].ea.direct_addr == 0x05


def test_signed_displacement():
    instr = decode_one([0x8B, 0x41, 0xDB])
    addr = instr.ops[1].ea.compute_addr
    assert addr.base_reg == Reg(RegType.B, RegMode.X)
    assert addr.index_reg == Reg(RegType.DI, RegMode.X)
    assert addr.displ == 0xDB - 0x100


def test_conditional_jump_ip_increment():
    instr = decode_one([0x75, 0xFE])
    assert instr.kind == InstrType.JNE
    assert instr.ops[0].kind == OperandType.IP_INC
    assert instr.ops[0].ip_inc == 0xFE - 0x100
    assert instr.ops[1].kind == OperandType.NONE


def test_second_byte_selects_opcode():
    instr = decode_one([0x83, 0xC6, 0x02])
    assert instr.mnemonic == "add"
    assert instr.kind == InstrType.ADD
    assert instr.ops[0].reg == Reg(RegType.SI, RegMode.X)
    assert instr.ops[1].data == 0x02


def test_sign_extended_immediate_is_stored_as_word():
    instr = decode_one([0x83, 0xC6, 0xFF])
    assert instr.ops[1].data == 0xFFFF


def test_shift_by_one_and_by_cl():
    one = decode_one([0xD1, 0xE0])
    assert one.mnemonic == "shl"
    assert one.ops[0].reg == Reg(RegType.A, RegMode.X)
    assert one.ops[1].kind == OperandType.DATA
    assert one.ops[1].data == 1
    by_cl = decode_one([0xD3, 0xE0])
    assert by_cl.ops[1].reg == Reg(RegType.C, RegMode.L)


def test_rep_prefix():
    instr = decode_one([0xF3, 0xA4])
    assert instr.mnemonic == "movsb"
    assert instr.prefixes.types == Prefix.REP
    assert instr.size == 2


def test_segment_prefix_sets_ea_segment():
    instr = decode_one([0x26, 0x8B, 0x07])
    assert instr.prefixes.types == Prefix.SEG
    assert instr.prefixes.seg == Reg(RegType.ES, RegMode.X)
    assert instr.ops[1].ea.seg == Reg(RegType.ES, RegMode.X)


def test_implicit_always_wide_dx():
    instr = decode_one([0xEC])
    assert instr.mnemonic == "in"
    assert instr.ops[0].reg == Reg(RegType.A, RegMode.L)
    assert instr.ops[1].reg == Reg(RegType.D, RegMode.X)


def test_far_call_with_segment_address():
    instr = decode_one([0x9A, 0x34, 0x12, 0x78, 0x56])
    assert instr.set_cs_addr
    assert instr.cs_addr == 0x5678
    assert instr.ops[0].ea.direct_addr == 0x1234
    assert instr.size == 5


def test_truncated_data_raises():
    with pytest.raises(DecodeError):
        decode_one([0xB9, 0x0C])


def test_empty_stream_raises():
    with pytest.raises(DecodeError):
        decode_next_instr(ByteStream(b""))


def test_unsupported_byte_raises_with_offset():
    with pytest.raises(DecodeError) as info:
        list(decode_instructions(bytes([0x41, 0x60])))
    assert info.value.offset == 1


def test_decode_instructions_consumes_whole_program():
    program = bytes([0x89, 0xD9, 0xB9, 0x0C, 0x00, 0x75, 0xFE, 0x41])
    instrs = list(decode_instructions(program))
    assert [i.mnemonic for i in instrs] == ["mov", "mov", "jne", "inc"]
    assert sum(i.size for i in instrs) == len(program)