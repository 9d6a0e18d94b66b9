"""Opcode tables for the 8086 decoder and a first-byte lookup index."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from typing import Optional

from .instr import InstrType, Reg, RegMode, RegType


class InstrFormat(IntEnum):
    """Kind of immediate data that follows the instruction."""

    NO_DATA = 0
    DATASW = 1
    DATAW = 2
    DATA8 = 3
    DATA16 = 4
    ADDR = 5
    IP_INC8 = 6
    IP_INC16 = 7
    SEG_ADDR = 8
    SWALLOW8 = 9


class DisplFormat(IntEnum):
    """Layout of the mod/reg/rm byte, if the instruction has one."""

    NONE = 0
    REG_RM = 1
    SR_RM = 2
    RM = 3


class FlagType(IntEnum):
    NONE = 0
    D = 1
    W = 2
    S = 3
    V = 4
    REG = 5
    SEG_REG = 6


@dataclass(frozen=True)
class InstrFlag:
    """A field of the first instruction byte, or an implied value.

    Explicit flags take ``size_bits`` bits at bit ``pos``; implicit flags
    carry ``value`` directly.
    """

    kind: FlagType
    is_implicit: bool = False
    pos: int = 0
    size_bits: int = 0
    value: int = 0
    is_always_wide: bool = False


@dataclass(frozen=True)
class TableRow:
    """An instruction encoding matched by ``first_byte & mask == opcode``."""

    mnemonic: str
    kind: InstrType
    mask: int
    opcode: int
    b1_index: Optional[int]
    flags: tuple
    displ_fmt: DisplFormat
    fmt: InstrFormat


@dataclass(frozen=True)
class B1Row:
    """Instruction selected by the reg field of the second byte."""

    mnemonic: str
    kind: InstrType
    fmt: InstrFormat
    is_far: bool = False


# General register by 3-bit encoding: (byte register, word register).
REG_BITS_MAP = (
    (Reg(RegType.A, RegMode.L), Reg(RegType.A, RegMode.X)),
    (Reg(RegType.C, RegMode.L), Reg(RegType.C, RegMode.X)),
    (Reg(RegType.D, RegMode.L), Reg(RegType.D, RegMode.X)),
    (Reg(RegType.B, RegMode.L), Reg(RegType.B, RegMode.X)),
    (Reg(RegType.A, RegMode.H), Reg(RegType.SP, RegMode.X)),
    (Reg(RegType.C, RegMode.H), Reg(RegType.BP, RegMode.X)),
    (Reg(RegType.D, RegMode.H), Reg(RegType.SI, RegMode.X)),
    (Reg(RegType.B, RegMode.H), Reg(RegType.DI, RegMode.X)),
)

# Segment register by 2-bit encoding.
SEG_REG_BITS_MAP = (
    Reg(RegType.ES, RegMode.X),
    Reg(RegType.CS, RegMode.X),
    Reg(RegType.SS, RegMode.X),
    Reg(RegType.DS, RegMode.X),
)

_ND = InstrFormat.NO_DATA

B1_ROWS = (
    # 1000 00sw
    (
        B1Row("add", InstrType.ADD, InstrFormat.DATASW),
        B1Row("or", InstrType.OR, InstrFormat.DATASW),
        B1Row("adc", InstrType.ADC, InstrFormat.DATASW),
        B1Row("sbb", InstrType.SBB, InstrFormat.DATASW),
        B1Row("and", InstrType.AND, InstrFormat.DATASW),
        B1Row("sub", InstrType.SUB, InstrFormat.DATASW),
        B1Row("xor", InstrType.XOR, InstrFormat.DATASW),
        B1Row("cmp", InstrType.CMP, InstrFormat.DATASW),
    ),
    # 1111 011w
    (
        B1Row("test", InstrType.TEST, InstrFormat.DATAW),
        B1Row("<error>", InstrType.UNKNOWN, _ND),
        B1Row("not", InstrType.NOT, _ND),
        B1Row("neg", InstrType.NEG, _ND),
        B1Row("mul", InstrType.MUL, _ND),
        B1Row("imul", InstrType.IMUL, _ND),
        B1Row("div", InstrType.DIV, _ND),
        B1Row("idiv", InstrType.IDIV, _ND),
    ),
    # 1111 111w
    (
        B1Row("inc", InstrType.INC, _ND),
        B1Row("dec", InstrType.DEC, _ND),
        B1Row("call", InstrType.CALL, _ND),
        B1Row("call", InstrType.CALL, _ND, True),
        B1Row("jmp", InstrType.JMP, _ND),
        B1Row("jmp", InstrType.JMP, _ND, True),
        B1Row("push", InstrType.PUSH, _ND),
        B1Row("<error>", InstrType.UNKNOWN, _ND),
    ),
    # 1101 00vw
    (
        B1Row("rol", InstrType.ROL, _ND),
        B1Row("ror", InstrType.ROR, _ND),
        B1Row("rcl", InstrType.RCL, _ND),
        B1Row("rcr", InstrType.RCR, _ND),
        B1Row("shl", InstrType.SHL, _ND),
        B1Row("shr", InstrType.SHR, _ND),
        B1Row("<error>", InstrType.UNKNOWN, _ND),
        B1Row("sar", InstrType.SAR, _ND),
    ),
)

F_SEG_REG = InstrFlag(FlagType.SEG_REG, pos=3, size_bits=2)
F_REG = InstrFlag(FlagType.REG, pos=0, size_bits=3)
F_W = InstrFlag(FlagType.W, pos=0, size_bits=1)
F_W_ALT = InstrFlag(FlagType.W, pos=3, size_bits=1)
F_D = InstrFlag(FlagType.D, pos=1, size_bits=1)
F_S = InstrFlag(FlagType.S, pos=1, size_bits=1)
F_V = InstrFlag(FlagType.V, pos=1, size_bits=1)
F_IMPL_REG_A = InstrFlag(FlagType.REG, is_implicit=True, value=RegType.A)
F_IMPL_REG_D = InstrFlag(FlagType.REG, is_implicit=True, value=RegType.D,
                         is_always_wide=True)
F_IMPL_D = InstrFlag(FlagType.D, is_implicit=True, value=1)


def _row(mnemonic, kind, mask, opcode, flags=(), displ=DisplFormat.NONE,
         fmt=_ND, b1_index=None):
    return TableRow(mnemonic, kind, mask, opcode, b1_index, tuple(flags),
                    displ, fmt)


_I = InstrType
_F = InstrFormat
_RR = DisplFormat.REG_RM
_RM = DisplFormat.RM

# Single-byte opcodes without flags, matched with mask 0xFF.
_PLAIN_ROWS = (
    ("je", _I.JE, 0x74, _F.IP_INC8),
    ("jl", _I.JL, 0x7C, _F.IP_INC8),
    ("jng", _I.JNG, 0x7E, _F.IP_INC8),
    ("jb", _I.JB, 0x72, _F.IP_INC8),
    ("jbe", _I.JBE, 0x76, _F.IP_INC8),
    ("jp", _I.JP, 0x7A, _F.IP_INC8),
    ("jo", _I.JO, 0x70, _F.IP_INC8),
    ("js", _I.JS, 0x78, _F.IP_INC8),
    ("jne", _I.JNE, 0x75, _F.IP_INC8),
    ("jnl", _I.JNL, 0x7D, _F.IP_INC8),
    ("jg", _I.JG, 0x7F, _F.IP_INC8),
    ("jnb", _I.JNB, 0x73, _F.IP_INC8),
    ("jnbe", _I.JNBE, 0x77, _F.IP_INC8),
    ("jnp", _I.JNP, 0x7B, _F.IP_INC8),
    ("jno", _I.JNO, 0x71, _F.IP_INC8),
    ("jns", _I.JNS, 0x79, _F.IP_INC8),
    ("jcxz", _I.JCXZ, 0xE3, _F.IP_INC8),
    ("loop", _I.LOOP, 0xE2, _F.IP_INC8),
    ("loopz", _I.LOOPZ, 0xE1, _F.IP_INC8),
    ("loopnz", _I.LOOPNZ, 0xE0, _F.IP_INC8),
    ("jmp", _I.JMP, 0xEB, _F.IP_INC8),
    ("call", _I.CALL, 0xE8, _F.IP_INC16),
    ("jmp", _I.JMP, 0xE9, _F.IP_INC16),
    ("ret", _I.RET, 0xC2, _F.DATA16),
    ("retf", _I.RETF, 0xCA, _F.DATA16),
    ("ret", _I.RET, 0xC3, _ND),
    ("retf", _I.RETF, 0xCB, _ND),
    ("xlat", _I.XLAT, 0xD7, _ND),
)

_PLAIN_ROWS_TAIL = (
    ("lahf", _I.LAHF, 0x9F, _ND),
    ("sahf", _I.SAHF, 0x9E, _ND),
    ("call", _I.CALL, 0x9A, _F.SEG_ADDR),
    ("jmp", _I.JMP, 0xEA, _F.SEG_ADDR),
    ("pushf", _I.PUSHF, 0x9C, _ND),
    ("popf", _I.POPF, 0x9D, _ND),
    ("aaa", _I.AAA, 0x37, _ND),
    ("daa", _I.DAA, 0x27, _ND),
    ("aas", _I.AAS, 0x3F, _ND),
    ("das", _I.DAS, 0x2F, _ND),
    ("aam", _I.AAM, 0xD4, _F.SWALLOW8),
    ("aad", _I.AAD, 0xD5, _F.SWALLOW8),
    ("cbw", _I.CBW, 0x98, _ND),
    ("cwd", _I.CWD, 0x99, _ND),
    ("movsb", _I.MOVSB, 0xA4, _ND),
    ("movsw", _I.MOVSW, 0xA5, _ND),
    ("cmpsb", _I.CMPSB, 0xA6, _ND),
    ("cmpsw", _I.CMPSW, 0xA7, _ND),
    ("scasb", _I.SCASB, 0xAE, _ND),
    ("scasw", _I.SCASW, 0xAF, _ND),
    ("lodsb", _I.LODSB, 0xAC, _ND),
    ("lodsw", _I.LODSW, 0xAD, _ND),
    ("stosb", _I.STOSB, 0xAA, _ND),
    ("stosw", _I.STOSW, 0xAB, _ND),
    ("int3", _I.INT, 0xCC, _ND),
    ("int", _I.INT, 0xCD, _F.DATA8),
    ("into", _I.INTO, 0xCE, _ND),
    ("iret", _I.IRET, 0xCF, _ND),
    ("cmc", _I.CMC, 0xF5, _ND),
    ("clc", _I.CLC, 0xF8, _ND),
    ("stc", _I.STC, 0xF9, _ND),
    ("cld", _I.CLD, 0xFC, _ND),
    ("std", _I.STD, 0xFD, _ND),
    ("cli", _I.CLI, 0xFA, _ND),
    ("sti", _I.STI, 0xFB, _ND),
    ("hlt", _I.HLT, 0xF4, _ND),
    ("wait", _I.WAIT, 0x9B, _ND),
)

INSTR_ROWS = (
    _row("push", _I.PUSH, 0xE7, 0x06, [F_SEG_REG]),
    _row("pop", _I.POP, 0xE7, 0x07, [F_SEG_REG]),

    _row("mov", _I.MOV, 0xF0, 0xB0, [F_W_ALT, F_REG], fmt=_F.DATAW),

    _row("esc", _I.ESC, 0xF8, 0xD8, displ=_RR),
    _row("push", _I.PUSH, 0xF8, 0x50, [F_REG]),
    _row("pop", _I.POP, 0xF8, 0x58, [F_REG]),
    _row("inc", _I.INC, 0xF8, 0x40, [F_REG]),
    _row("dec", _I.DEC, 0xF8, 0x48, [F_REG]),
    _row("xchg", _I.XCHG, 0xF8, 0x90, [F_REG, F_IMPL_REG_A]),

    _row("mov", _I.MOV, 0xFC, 0x88, [F_D, F_W], _RR),
    _row("mov", _I.MOV, 0xFC, 0xA0, [F_D, F_W, F_IMPL_REG_A], fmt=_F.ADDR),
    _row("add", _I.ADD, 0xFC, 0x00, [F_D, F_W], _RR),
    _row("or", _I.OR, 0xFC, 0x08, [F_D, F_W], _RR),
    _row("adc", _I.ADC, 0xFC, 0x10, [F_D, F_W], _RR),
    _row("and", _I.AND, 0xFC, 0x20, [F_D, F_W], _RR),
    _row("sub", _I.SUB, 0xFC, 0x28, [F_D, F_W], _RR),
    _row("sbb", _I.SBB, 0xFC, 0x18, [F_D, F_W], _RR),
    _row("xor", _I.XOR, 0xFC, 0x30, [F_D, F_W], _RR),
    _row("cmp", _I.CMP, 0xFC, 0x38, [F_D, F_W], _RR),
    _row("<0>", _I.UNKNOWN, 0xFC, 0x80, [F_S, F_W], _RM, _F.DATASW, 0),
    _row("<3>", _I.UNKNOWN, 0xFC, 0xD0, [F_V, F_W], _RM, _ND, 3),

    _row("mov", _I.MOV, 0xFE, 0xC6, [F_W], _RM, _F.DATAW),
    _row("xchg", _I.XCHG, 0xFE, 0x86, [F_W, F_IMPL_D], _RR),
    _row("add", _I.ADD, 0xFE, 0x04, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("or", _I.OR, 0xFE, 0x0C, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("adc", _I.ADC, 0xFE, 0x14, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("sub", _I.SUB, 0xFE, 0x2C, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("and", _I.AND, 0xFE, 0x24, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("sbb", _I.SBB, 0xFE, 0x1C, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("<2>", _I.UNKNOWN, 0xFE, 0xFE, [F_W], _RM, _ND, 2),
    _row("xor", _I.XOR, 0xFE, 0x34, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("cmp", _I.CMP, 0xFE, 0x3C, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("in", _I.IN, 0xFE, 0xE4, [F_W, F_IMPL_REG_A], fmt=_F.DATA8),
    _row("out", _I.OUT, 0xFE, 0xE6, [F_W, F_IMPL_REG_A, F_IMPL_D],
         fmt=_F.DATA8),
    _row("<1>", _I.UNKNOWN, 0xFE, 0xF6, [F_W], _RM, _ND, 1),
    _row("test", _I.TEST, 0xFE, 0x84, [F_W], _RR),
    _row("test", _I.TEST, 0xFE, 0xA8, [F_W, F_IMPL_REG_A], fmt=_F.DATAW),
    _row("in", _I.IN, 0xFE, 0xEC, [F_W, F_IMPL_REG_A, F_IMPL_REG_D]),
    _row("out", _I.OUT, 0xFE, 0xEE, [F_W, F_IMPL_REG_D, F_IMPL_REG_A]),
    _row("mov", _I.MOV, 0xFF, 0x8C, displ=DisplFormat.SR_RM),
    _row("mov", _I.MOV, 0xFF, 0x8E, [F_IMPL_D], DisplFormat.SR_RM),
    _row("pop", _I.POP, 0xFF, 0x8F, displ=_RM),
    *(_row(m, k, 0xFF, op, fmt=f) for m, k, op, f in _PLAIN_ROWS),
    _row("lea", _I.LEA, 0xFF, 0x8D, [F_IMPL_D], _RR),
    _row("lds", _I.LDS, 0xFF, 0xC5, [F_IMPL_D], _RR),
    _row("les", _I.LES, 0xFF, 0xC4, [F_IMPL_D], _RR),
    *(_row(m, k, 0xFF, op, fmt=f) for m, k, op, f in _PLAIN_ROWS_TAIL),
)


@lru_cache(maxsize=None)
def build_index() -> tuple:
    """Map every first byte to the first table row that matches it, or None."""
    return tuple(
        next((row for row in INSTR_ROWS if row.opcode == b0 & row.mask), None)
        for b0 in range(256)
    )


def row_for_byte(b0: int) -> Optional[TableRow]:
    """Table row for an instruction's first byte, or None if unsupported."""
    if not 0 <= b0 <= 0xFF:
        raise ValueError(f"first byte out of range: {b0}")
    return build_index()[b0]