"""8086 execution model: machine state and single-instruction simulation."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict

from .instr import (
    EaType,
    EffectiveAddress,
    Instruction,
    InstrType,
    Operand,
    OperandType,
    Reg,
    RegMode,
    RegType,
)

MEMORY_SIZE = 1024 * 1024


class Flag(IntEnum):
    """Bits of the flags register, in display order."""

    CARRY = 0
    PARITY = 1
    AUXILIARY_CARRY = 2
    ZERO = 3
    SIGN = 4
    OVERFLOW = 5
    INTERRUPT_ENABLE = 6
    DIRECTION = 7
    TRAP = 8


def _new_memory() -> bytearray:
    return bytearray(MEMORY_SIZE)


def _new_flags() -> list:
    return [0] * len(Flag)


def _new_regs() -> list:
    return [0] * len(RegType)


@dataclass
class State:
    """Registers, flags and IP of the machine, plus its (shared) memory."""

    memory: bytearray = field(default_factory=_new_memory, repr=False)
    flags: list = field(default_factory=_new_flags)
    regs: list = field(default_factory=_new_regs)
    ip: int = 0


@dataclass(frozen=True)
class _Location:
    """Where an operand lives: a register part or a memory address."""

    in_memory: bool
    index: int
    offset: int
    size: int


def _reg_location(reg: Reg) -> _Location:
    mode = RegMode(reg.mode)
    if mode == RegMode.L:
        return _Location(False, int(reg.kind), 0, 1)
    if mode == RegMode.H:
        return _Location(False, int(reg.kind), 1, 1)
    return _Location(False, int(reg.kind), 0, 2)


def _load(state: State, loc: _Location) -> int:
    if loc.in_memory:
        value = state.memory[loc.index]
        if loc.size == 2:
            value |= state.memory[(loc.index + 1) % MEMORY_SIZE] << 8
        return value
    value = state.regs[loc.index]
    if loc.size == 2:
        return value & 0xFFFF
    return (value >> (8 * loc.offset)) & 0xFF


def _store(state: State, loc: _Location, value: int) -> None:
    if loc.in_memory:
        state.memory[loc.index] = value & 0xFF
        if loc.size == 2:
            state.memory[(loc.index + 1) % MEMORY_SIZE] = (value >> 8) & 0xFF
        return
    if loc.size == 2:
        state.regs[loc.index] = value & 0xFFFF
        return
    shift = 8 * loc.offset
    old = state.regs[loc.index] & ~(0xFF << shift) & 0xFFFF
    state.regs[loc.index] = old | ((value & 0xFF) << shift)


def _load_reg(reg: Reg, state: State) -> int:
    return _load(state, _reg_location(reg))


def _ea_address(ea: EffectiveAddress, state: State) -> int:
    if ea.kind == EaType.DIRECT:
        return ea.direct_addr % MEMORY_SIZE
    addr = ea.compute_addr
    base = _load_reg(addr.base_reg, state) if addr.base_reg else 0
    index = _load_reg(addr.index_reg, state) if addr.index_reg else 0
    return (base + index + addr.displ) % MEMORY_SIZE


def _op_location(op: Operand, state: State, w: bool) -> _Location:
    if op.kind == OperandType.REG:
        return _reg_location(op.reg)
    if op.kind == OperandType.EA:
        return _Location(True, _ea_address(op.ea, state), 0, 2 if w else 1)
    raise ValueError(f"operand of type {op.kind.name} is not a destination")


def _load_op(op: Operand, state: State, w: bool) -> int:
    if op.kind == OperandType.NONE:
        return 0
    if op.kind in (OperandType.REG, OperandType.EA):
        return _load(state, _op_location(op, state, w))
    if op.kind == OperandType.DATA:
        return op.data & 0xFFFF
    return op.ip_inc & 0xFFFF


def _parity(value: int) -> int:
    return int(bin(value & 0xFF).count("1") % 2 == 0)


def _arith(state: State, instr: Instruction, subtract: bool,
           store: bool) -> None:
    w = instr.w
    dst = _op_location(instr.ops[0], state, w) if store else None
    v0 = _load_op(instr.ops[0], state, w)
    v1 = _load_op(instr.ops[1], state, w)

    bits = 16 if w else 8
    sign_mask = 1 << (bits - 1)
    mask = (1 << bits) - 1
    flags = state.flags

    if subtract:
        res = ((v0 & mask) - (v1 & mask)) & 0xFFFF
        res_unmasked = (v0 - v1) & 0xFFFFFFFF
        aux = ((v0 & 0x0F) - (v1 & 0x0F)) & 0x10
        overflow = (v0 ^ v1) & (v0 ^ res) & sign_mask
    else:
        res = ((v0 & mask) + (v1 & mask)) & 0xFFFF
        res_unmasked = v0 + v1
        aux = ((v0 & 0x0F) + (v1 & 0x0F)) & 0x10
        overflow = ~(v0 ^ v1) & (v0 ^ res) & sign_mask

    flags[Flag.CARRY] = int((res_unmasked & (sign_mask << 1)) != 0)
    flags[Flag.PARITY] = _parity(res)
    flags[Flag.ZERO] = int(res == 0)
    flags[Flag.SIGN] = int((res & sign_mask) != 0)
    flags[Flag.AUXILIARY_CARRY] = int(aux != 0)
    flags[Flag.OVERFLOW] = int(overflow != 0)

    if dst is not None:
        _store(state, dst, res)


def _cond_jump(state: State, instr: Instruction, cond: bool) -> None:
    if cond:
        inc = _load_op(instr.ops[0], state, instr.w)
        if inc & 0x8000:
            inc -= 0x10000
        state.ip = (state.ip + inc) & 0xFFFF


_Cond = Callable[[list, State], bool]

# Above/below compare unsigned values, greater/less compare signed values.
_JUMP_CONDITIONS: Dict[InstrType, _Cond] = {
    InstrType.JBE: lambda f, s: bool(f[Flag.CARRY] and f[Flag.ZERO]),
    InstrType.JNBE: lambda f, s: not f[Flag.CARRY] and not f[Flag.ZERO],
    InstrType.JB: lambda f, s: bool(f[Flag.CARRY]),
    InstrType.JNB: lambda f, s: not f[Flag.CARRY],
    InstrType.JE: lambda f, s: bool(f[Flag.ZERO]),
    InstrType.JNE: lambda f, s: not f[Flag.ZERO],
    InstrType.JG: lambda f, s: (not f[Flag.ZERO]
                                and f[Flag.SIGN] == f[Flag.OVERFLOW]),
    InstrType.JNG: lambda f, s: bool(f[Flag.ZERO]
                                     and f[Flag.SIGN] != f[Flag.OVERFLOW]),
    InstrType.JL: lambda f, s: f[Flag.SIGN] != f[Flag.OVERFLOW],
    InstrType.JNL: lambda f, s: f[Flag.SIGN] == f[Flag.OVERFLOW],
    InstrType.JO: lambda f, s: bool(f[Flag.OVERFLOW]),
    InstrType.JNO: lambda f, s: not f[Flag.OVERFLOW],
    InstrType.JP: lambda f, s: bool(f[Flag.PARITY]),
    InstrType.JNP: lambda f, s: not f[Flag.PARITY],
    InstrType.JS: lambda f, s: bool(f[Flag.SIGN]),
    InstrType.JNS: lambda f, s: not f[Flag.SIGN],
    InstrType.JCXZ: lambda f, s: not s.regs[RegType.C],
}

_LOOP_CONDITIONS: Dict[InstrType, _Cond] = {
    InstrType.LOOP: lambda f, s: bool(s.regs[RegType.C]),
    InstrType.LOOPZ: lambda f, s: bool(s.regs[RegType.C] and f[Flag.ZERO]),
    InstrType.LOOPNZ: lambda f, s: bool(s.regs[RegType.C]
                                        and not f[Flag.ZERO]),
}


def simulate_instr(state: State, instr: Instruction) -> State:
    """Execute one instruction and return the new state.

    The old state is left untouched except for memory, which both share.
    """
    if instr.kind == InstrType.UNKNOWN:
        raise ValueError(f"cannot simulate unknown instruction "
                         f"'{instr.mnemonic}'")

    new_state = State(memory=state.memory, flags=list(state.flags),
                      regs=list(state.regs),
                      ip=(state.ip + instr.size) & 0xFFFF)
    kind = instr.kind

    if kind == InstrType.MOV:
        dst = _op_location(instr.ops[0], new_state, instr.w)
        _store(new_state, dst, _load_op(instr.ops[1], new_state, instr.w))
    elif kind == InstrType.ADD:
        _arith(new_state, instr, subtract=False, store=True)
    elif kind == InstrType.SUB:
        _arith(new_state, instr, subtract=True, store=True)
    elif kind == InstrType.CMP:
        _arith(new_state, instr, subtract=True, store=False)
    elif kind in _JUMP_CONDITIONS:
        _cond_jump(new_state, instr,
                   _JUMP_CONDITIONS[kind](new_state.flags, new_state))
    elif kind in _LOOP_CONDITIONS:
        new_state.regs[RegType.C] = (new_state.regs[RegType.C] - 1) & 0xFFFF
        _cond_jump(new_state, instr,
                   _LOOP_CONDITIONS[kind](new_state.flags, new_state))
    else:
        print(f"Simulation error: unhandled instruction '{instr.mnemonic}' "
              f"of type {int(kind)}", file=sys.stderr)

    return new_state