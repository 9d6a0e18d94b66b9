"""Decoded 8086 instruction model: registers, operands, prefixes and instructions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Optional


class RegType(IntEnum):
    """8086 register files, in encoding order for general registers."""

    A = 0
    C = 1
    D = 2
    B = 3
    SP = 4
    BP = 5
    SI = 6
    DI = 7
    ES = 8
    CS = 9
    SS = 10
    DS = 11


class RegMode(IntEnum):
    """Access width of a register: low byte, high byte or whole word."""

    L = 0
    H = 1
    X = 2


@dataclass(frozen=True)
class Reg:
    """A register together with the part of it that is accessed."""

    kind: RegType
    mode: RegMode = RegMode.X


# Registers with separately addressable low and high bytes.
_SPLIT_REGS = frozenset({RegType.A, RegType.C, RegType.D, RegType.B})

_REG_NAMES = {
    RegType.A: ("al", "ah", "ax"),
    RegType.C: ("cl", "ch", "cx"),
    RegType.D: ("dl", "dh", "dx"),
    RegType.B: ("bl", "bh", "bx"),
    RegType.SP: ("sp", "sp", "sp"),
    RegType.BP: ("bp", "bp", "bp"),
    RegType.SI: ("si", "si", "si"),
    RegType.DI: ("di", "di", "di"),
    RegType.ES: ("es", "es", "es"),
    RegType.CS: ("cs", "cs", "cs"),
    RegType.SS: ("ss", "ss", "ss"),
    RegType.DS: ("ds", "ds", "ds"),
}


def canonical_reg(reg_type: RegType, desired_mode: RegMode) -> Reg:
    """Return the valid register for a type and a desired access mode.

    Registers without byte halves are always accessed as full words, so
    ``canonical_reg(RegType.BP, RegMode.L)`` gives ``Reg(RegType.BP, RegMode.X)``.
    """
    reg_type = RegType(reg_type)
    mode = RegMode(desired_mode)
    if reg_type not in _SPLIT_REGS:
        mode = RegMode.X
    return Reg(reg_type, mode)


def reg_name(reg: Reg) -> str:
    """Assembly name of a register; word-only registers ignore the mode."""
    return _REG_NAMES[RegType(reg.kind)][RegMode(reg.mode)]


class EaType(IntEnum):
    """How an effective address is formed."""

    COMPUTE = 0
    DIRECT = 1


@dataclass(frozen=True)
class ComputeAddr:
    """Address computed as base + index + signed displacement."""

    base_reg: Optional[Reg] = None
    index_reg: Optional[Reg] = None
    displ: int = 0


@dataclass(frozen=True)
class EffectiveAddress:
    """A memory operand, either computed from registers or a direct address."""

    kind: EaType = EaType.COMPUTE
    seg: Optional[Reg] = None
    compute_addr: Optional[ComputeAddr] = None
    direct_addr: int = 0


class OperandType(IntEnum):
    NONE = 0
    REG = 1
    EA = 2
    DATA = 3
    IP_INC = 4


@dataclass(frozen=True)
class Operand:
    """One instruction operand; the field matching ``kind`` holds its value."""

    kind: OperandType = OperandType.NONE
    reg: Optional[Reg] = None
    ea: Optional[EffectiveAddress] = None
    data: int = 0
    ip_inc: int = 0


class Prefix(IntFlag):
    NONE = 0
    LOCK = 1 << 0
    REP = 1 << 1
    REPNE = 1 << 2
    SEG = 1 << 3


@dataclass
class Prefixes:
    """Prefixes seen before an instruction and the segment override, if any."""

    seg: Optional[Reg] = None
    types: Prefix = Prefix.NONE


class InstrType(IntEnum):
    UNKNOWN = 0
    PUSH = 1
    POP = 2
    MOV = 3
    INC = 4
    DEC = 5
    XCHG = 6
    ADD = 7
    OR = 8
    ADC = 9
    AND = 10
    SUB = 11
    SBB = 12
    XOR = 13
    CMP = 14
    IN = 15
    OUT = 16
    TEST = 17
    JE = 18
    JL = 19
    JNG = 20
    JB = 21
    JBE = 22
    JP = 23
    JO = 24
    JS = 25
    JNE = 26
    JNL = 27
    JG = 28
    JNB = 29
    JNBE = 30
    JNP = 31
    JNO = 32
    JNS = 33
    JCXZ = 34
    LOOP = 35
    LOOPZ = 36
    LOOPNZ = 37
    JMP = 38
    CALL = 39
    RET = 40
    RETF = 41
    XLAT = 42
    LEA = 43
    LDS = 44
    LES = 45
    LAHF = 46
    SAHF = 47
    PUSHF = 48
    POPF = 49
    AAA = 50
    DAA = 51
    AAS = 52
    DAS = 53
    AAM = 54
    AAD = 55
    CBW = 56
    CWD = 57
    MOVSB = 58
    MOVSW = 59
    CMPSB = 60
    CMPSW = 61
    SCASB = 62
    SCASW = 63
    LODSB = 64
    LODSW = 65
    STOSB = 66
    STOSW = 67
    INT = 68
    INTO = 69
    IRET = 70
    CMC = 71
    CLC = 72
    STC = 73
    CLD = 74
    STD = 75
    CLI = 76
    STI = 77
    HLT = 78
    WAIT = 79
    NOT = 80
    NEG = 81
    MUL = 82
    IMUL = 83
    DIV = 84
    IDIV = 85
    ROR = 86
    ROL = 87
    RCL = 88
    RCR = 89
    SHL = 90
    SHR = 91
    SAR = 92
    ESC = 93


def _empty_ops() -> list:
    return [Operand(), Operand()]


@dataclass
class Instruction:
    """A decoded instruction with up to two operands."""

    mnemonic: Optional[str] = None
    kind: InstrType = InstrType.UNKNOWN
    ops: list = field(default_factory=_empty_ops)
    prefixes: Prefixes = field(default_factory=Prefixes)
    set_cs_addr: bool = False
    cs_addr: int = 0
    size: int = 0
    is_far: bool = False
    w: bool = False