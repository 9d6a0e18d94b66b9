"""Text rendering of instructions, simulation state and clock estimates."""

from __future__ import annotations

from .clocks import Clocks
from .instr import (
    EaType,
    EffectiveAddress,
    Instruction,
    Operand,
    OperandType,
    Prefix,
    Reg,
    RegMode,
    RegType,
    reg_name,
)
from .simulate import Flag, State

_PRINT_REGS = (
    RegType.A, RegType.B, RegType.C, RegType.D,
    RegType.SP, RegType.BP, RegType.SI, RegType.DI,
    RegType.ES, RegType.CS, RegType.SS, RegType.DS,
)

_FLAG_CHARS = "CPAZSOIDT"


def _format_ea(ea: EffectiveAddress, set_cs_addr: bool, is_far: bool) -> str:
    parts = ["far "] if is_far else []
    if set_cs_addr:
        parts.append(str(ea.direct_addr))
        return "".join(parts)
    if ea.seg is not None:
        parts.append(f"{reg_name(ea.seg)}:")
    if ea.kind == EaType.DIRECT:
        parts.append(f"[+{ea.direct_addr}]")
        return "".join(parts)

    addr = ea.compute_addr
    parts.append("[")
    separator = ""
    if addr.base_reg is not None:
        parts.append(reg_name(addr.base_reg))
        separator = " + "
    if addr.index_reg is not None:
        parts.append(separator + reg_name(addr.index_reg))
    if addr.displ != 0:
        op = "-" if addr.displ < 0 else "+"
        parts.append(f" {op} {abs(addr.displ)}")
    parts.append("]")
    return "".join(parts)


def _format_operand(op: Operand, instr: Instruction) -> str:
    if op.kind == OperandType.REG:
        return reg_name(op.reg)
    if op.kind == OperandType.EA:
        return _format_ea(op.ea, instr.set_cs_addr, instr.is_far)
    if op.kind == OperandType.DATA:
        return str(op.data)
    if op.kind == OperandType.IP_INC:
        return f"${op.ip_inc + instr.size:+d}"
    return ""


def _format_prefixes(types: Prefix) -> str:
    out = []
    if types & Prefix.LOCK:
        out.append("lock ")
    if types & Prefix.REP:
        out.append("rep ")
    if types & Prefix.REPNE:
        out.append("repne ")
    return "".join(out)


def format_instr(instr: Instruction) -> str:
    """Disassembly of an instruction in NASM syntax."""
    op0, op1 = instr.ops[0], instr.ops[1]
    parts = [_format_prefixes(instr.prefixes.types), instr.mnemonic or ""]
    if op0.kind != OperandType.NONE:
        parts.append(" ")
        if instr.set_cs_addr:
            parts.append(f"{instr.cs_addr}: ")
        # Width prefix is always printed for a memory first operand.
        if op0.kind == OperandType.EA:
            parts.append("word " if instr.w else "byte ")
        parts.append(_format_operand(op0, instr))
    if op1.kind != OperandType.NONE:
        parts.append(", " + _format_operand(op1, instr))
    return "".join(parts)


def _format_flags(flags) -> str:
    return "".join(ch for ch, bit in zip(_FLAG_CHARS, flags) if bit)


def format_state_diff(old_state: State, new_state: State,
                      skip_ip: bool = False) -> str:
    """Changes between two states; IP changes are left out if ``skip_ip``."""
    parts = []
    for reg_type in _PRINT_REGS:
        old, new = old_state.regs[reg_type], new_state.regs[reg_type]
        if old != new:
            name = reg_name(Reg(reg_type, RegMode.X))
            parts.append(f"{name}:0x{old:x}->0x{new:x} ")

    if not skip_ip and old_state.ip != new_state.ip:
        parts.append(f"ip:0x{old_state.ip:x}->0x{new_state.ip:x} ")

    if list(old_state.flags) != list(new_state.flags):
        parts.append(f"flags:{_format_flags(old_state.flags)}"
                     f"->{_format_flags(new_state.flags)}")
    return "".join(parts)


def format_state_registers(state: State, skip_ip: bool = False) -> str:
    """All non-zero registers, IP unless ``skip_ip``, and set flags."""
    lines = []
    for reg_type in _PRINT_REGS:
        value = state.regs[reg_type]
        if value:
            name = reg_name(Reg(reg_type, RegMode.X))
            lines.append(f"      {name}: 0x{value:04x} ({value})\n")
    if not skip_ip:
        lines.append(f"      ip: 0x{state.ip:04x} ({state.ip})\n")
    if any(state.flags):
        lines.append(f"   flags: {_format_flags(state.flags)}\n")
    return "".join(lines)


def format_clocks(clocks: Clocks, total: int) -> str:
    """Clock estimate of one instruction with the running total."""
    parts = [f"Clocks: {clocks.total():+d} = {total}"]
    if clocks.ea or clocks.p:
        parts.append(f"({clocks.base}")
        if clocks.ea:
            parts.append(f" + {clocks.ea}ea")
        if clocks.p:
            parts.append(f" + {clocks.p}p")
        parts.append(")")
    parts.append(" | ")
    return "".join(parts)