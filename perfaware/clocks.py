"""Cycle count estimation for decoded 8086/8088 instructions."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from .instr import Instruction, InstrType, OperandType, RegType


@dataclass(frozen=True)
class Clocks:
    """Clock estimate split into base, effective address and penalty parts."""

    base: int = 0
    ea: int = 0
    p: int = 0

    def total(self) -> int:
        return self.base + self.ea + self.p


_FOUR_CLOCK_TYPES = frozenset({
    InstrType.ADD, InstrType.SUB, InstrType.CMP,
    InstrType.JBE, InstrType.JNBE, InstrType.JB, InstrType.JNB,
    InstrType.JE, InstrType.JNE, InstrType.JG, InstrType.JNG,
    InstrType.JL, InstrType.JNL, InstrType.JO, InstrType.JNO,
    InstrType.JP, InstrType.JNP, InstrType.JS, InstrType.JNS,
    InstrType.JCXZ, InstrType.LOOP, InstrType.LOOPZ, InstrType.LOOPNZ,
})


def _mov_clocks(instr: Instruction) -> Clocks:
    op0, op1 = instr.ops[0], instr.ops[1]
    if op0.kind == OperandType.REG and op1.kind == OperandType.REG:
        return Clocks(2)
    if op0.kind == OperandType.REG and op1.kind == OperandType.EA:
        return Clocks(10) if op0.reg.kind == RegType.A else Clocks(8)
    if op1.kind == OperandType.REG and op0.kind == OperandType.EA:
        return Clocks(10) if op1.reg.kind == RegType.A else Clocks(9)
    if op0.kind == OperandType.REG and op1.kind == OperandType.DATA:
        return Clocks(4)
    if op0.kind == OperandType.EA and op1.kind == OperandType.DATA:
        return Clocks(10)
    return Clocks(4)


def calc_clocks(instr: Instruction, is_8088: bool) -> Clocks:
    """Estimate clocks for an instruction; unhandled ones give zero.

    ``is_8088`` selects the 8088 model; both models currently agree.
    """
    if instr.kind == InstrType.MOV:
        return _mov_clocks(instr)
    if instr.kind in _FOUR_CLOCK_TYPES:
        return Clocks(4)
    print(f"Calculate clocks error: unhandled instruction '{instr.mnemonic}' "
          f"of type {int(instr.kind)}", file=sys.stderr)
    return Clocks()