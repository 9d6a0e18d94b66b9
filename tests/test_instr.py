import pytest

from perfaware.instr import (
    Instruction,
    OperandType,
    Prefix,
    Prefixes,
    Reg,
    RegMode,
    RegType,
    canonical_reg,
    reg_name,
)

SPLIT = [RegType.A, RegType.C, RegType.D, RegType.B]
WORD_ONLY = [r for r in RegType if r not in SPLIT]


def test_canonical_reg_forces_word_mode_for_bp():
    assert canonical_reg(RegType.BP, RegMode.L) == Reg(RegType.BP, RegMode.X)


@pytest.mark.parametrize("reg_type", SPLIT)
@pytest.mark.parametrize("mode", list(RegMode))
def test_canonical_reg_keeps_mode_for_split_registers(reg_type, mode):
    assert canonical_reg(reg_type, mode) == Reg(reg_type, mode)


@pytest.mark.parametrize("reg_type", WORD_ONLY)
@pytest.mark.parametrize("mode", list(RegMode))
def test_canonical_reg_word_only(reg_type, mode):
    assert canonical_reg(reg_type, mode).mode == RegMode.X


def test_reg_name_ignores_mode_for_word_registers():
    assert reg_name(Reg(RegType.BP, RegMode.L)) == "bp"


def test_reg_name_general_register():
    assert reg_name(Reg(RegType.A, RegMode.X)) == "ax"
    assert reg_name(Reg(RegType.C, RegMode.L)) == "cl"
    assert reg_name(Reg(RegType.D, RegMode.H)) == "dh"


@pytest.mark.parametrize("reg_type", SPLIT)
def test_reg_name_suffix_matches_mode(reg_type):
    suffixes = [reg_name(Reg(reg_type, m))[-1] for m in RegMode]
    assert suffixes == ["l", "h", "x"]
    assert len({reg_name(Reg(reg_type, m))[0] for m in RegMode}) == 1


@pytest.mark.parametrize("reg_type", WORD_ONLY)
def test_reg_name_same_for_all_modes(reg_type):
    names = {reg_name(Reg(reg_type, m)) for m in RegMode}
    assert len(names) == 1


def test_reg_names_are_unique_as_words():
    names = [reg_name(Reg(r, RegMode.X)) for r in RegType]
    assert len(set(names)) == len(names)


def test_instruction_defaults_have_no_operands():
    instr = Instruction()
    assert [op.kind for op in instr.ops] == [OperandType.NONE, OperandType.NONE]
    assert instr.prefixes.types == Prefix.NONE
    assert instr.mnemonic is None


def test_instructions_do_not_share_operand_lists():
    a = Instruction()
    b = Instruction()
    a.ops[0] = None
    assert b.ops[0] is not None and b.ops[0].kind == OperandType.NONE


def test_prefix_flags_combine():
    p = Prefixes()
    p.types |= Prefix.REP
    p.types |= Prefix.SEG
    assert Prefix.REP in p.types
    assert Prefix.SEG in p.types
    assert Prefix.LOCK not in p.types