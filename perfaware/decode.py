"""Decoder turning 8086 machine code into Instruction objects."""

from __future__ import annotations

from typing import Iterator, Optional

from .decode_tables import (
    B1_ROWS,
    REG_BITS_MAP,
    SEG_REG_BITS_MAP,
    DisplFormat,
    FlagType,
    InstrFormat,
    row_for_byte,
)
from .instr import (
    ComputeAddr,
    EaType,
    EffectiveAddress,
    Instruction,
    Operand,
    OperandType,
    Prefix,
    Prefixes,
    Reg,
    RegMode,
    RegType,
    canonical_reg,
)
from .stream import ByteStream, EndOfStreamError


class DecodeError(ValueError):
    """Raised when bytes cannot be decoded into an instruction.

    ``offset`` is the position of the first byte of the failing instruction.
    """

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} (at byte {offset})")
        self.message = message
        self.offset = offset


def _reg_from_bits(bits: int, is_wide: bool) -> Reg:
    return REG_BITS_MAP[bits & 0x7][1 if is_wide else 0]


def _seg_reg_from_bits(bits: int) -> Reg:
    return SEG_REG_BITS_MAP[bits & 0x3]


def _word(reg_type: RegType) -> Reg:
    return canonical_reg(reg_type, RegMode.X)


# Base and index registers for each r/m encoding of a computed address.
_COMPUTE_REGS = (
    (RegType.B, RegType.SI),
    (RegType.B, RegType.DI),
    (RegType.BP, RegType.SI),
    (RegType.BP, RegType.DI),
    (None, RegType.SI),
    (None, RegType.DI),
    (RegType.BP, None),
    (RegType.B, None),
)


def _decode_effective_address(stream: ByteStream, rm: int, mod: int,
                              seg: Optional[Reg]) -> EffectiveAddress:
    if rm == 6 and mod == 0:
        return EffectiveAddress(kind=EaType.DIRECT, seg=seg,
                                direct_addr=stream.read_word())
    base, index = _COMPUTE_REGS[rm]
    displ = 0
    # mod == 1: 8-bit displacement, mod == 2: 16-bit displacement
    if mod in (1, 2):
        displ = stream.read_signed(mod != 1)
    addr = ComputeAddr(
        base_reg=_word(base) if base is not None else None,
        index_reg=_word(index) if index is not None else None,
        displ=displ,
    )
    return EffectiveAddress(kind=EaType.COMPUTE, seg=seg, compute_addr=addr)


def _decode_prefix(b: int, prefixes: Prefixes) -> Prefix:
    if (b & 0xE7) == 0x26:
        seg = _seg_reg_from_bits((b & 0x18) >> 3)
        prefixes.seg = canonical_reg(seg.kind, seg.mode)
        kind = Prefix.SEG
    else:
        kind = {0xF0: Prefix.LOCK, 0xF2: Prefix.REPNE,
                0xF3: Prefix.REP}.get(b, Prefix.NONE)
    prefixes.types |= kind
    return kind


def _read(stream: ByteStream, begin: int, message: str, reader, *args) -> int:
    try:
        return reader(*args)
    except EndOfStreamError as exc:
        raise DecodeError(message, begin) from exc


def decode_next_instr(stream: ByteStream) -> Instruction:
    """Decode one instruction, with its prefixes, at the stream position."""
    begin = stream.pos
    prefixes = Prefixes()

    while True:
        b0 = _read(stream, begin, "no instruction or prefix", stream.read_byte)
        if _decode_prefix(b0, prefixes) == Prefix.NONE:
            break

    row = row_for_byte(b0)
    if row is None:
        raise DecodeError(f"unsupported instruction byte 0x{b0:02X}", begin)

    flags = {FlagType.D: -1, FlagType.W: 1, FlagType.S: -1, FlagType.V: -1}
    ops = []

    for flag in row.flags:
        if flag.is_implicit:
            f = flag.value
        else:
            f = (b0 >> flag.pos) & ((1 << flag.size_bits) - 1)
        if flag.kind == FlagType.REG:
            is_wide = bool(flags[FlagType.W]) or (
                flag.is_implicit and flag.is_always_wide)
            ops.append(Operand(OperandType.REG, reg=_reg_from_bits(f, is_wide)))
        elif flag.kind == FlagType.SEG_REG:
            ops.append(Operand(OperandType.REG, reg=_seg_reg_from_bits(f)))
        else:
            flags[flag.kind] = f

    w = flags[FlagType.W] > 0
    d = flags[FlagType.D] > 0
    s = flags[FlagType.S] > 0
    v = flags[FlagType.V] > 0

    instr = Instruction(mnemonic=row.mnemonic, kind=row.kind,
                        prefixes=prefixes, w=w)
    fmt = row.fmt

    if row.displ_fmt != DisplFormat.NONE:
        b1 = _read(stream, begin, "failed to read displacement",
                   stream.read_byte)
        mod = (b1 & 0xC0) >> 6
        reg = (b1 & 0x38) >> 3
        sr = (b1 & 0x18) >> 3
        rm = b1 & 0x07

        if mod == 3:
            ops.append(Operand(OperandType.REG, reg=_reg_from_bits(rm, w)))
        else:
            ea = _read(stream, begin, "failed to read displacement",
                       _decode_effective_address, stream, rm, mod,
                       prefixes.seg)
            ops.append(Operand(OperandType.EA, ea=ea))

        if row.displ_fmt == DisplFormat.RM:
            # reg field is the rest of the opcode
            if row.b1_index is not None:
                b1_row = B1_ROWS[row.b1_index][reg]
                instr.mnemonic = b1_row.mnemonic
                instr.kind = b1_row.kind
                instr.is_far = b1_row.is_far
                fmt = b1_row.fmt
        elif row.displ_fmt == DisplFormat.REG_RM:
            ops.append(Operand(OperandType.REG, reg=_reg_from_bits(reg, w)))
        else:
            ops.append(Operand(OperandType.REG, reg=_seg_reg_from_bits(sr)))

    if flags[FlagType.V] >= 0:
        if v:
            ops.append(Operand(OperandType.REG, reg=Reg(RegType.C, RegMode.L)))
        else:
            ops.append(Operand(OperandType.DATA, data=1))

    should_read_data = True
    is_sign_extend = False
    is_data_w = w
    if fmt == InstrFormat.NO_DATA:
        should_read_data = False
    elif fmt == InstrFormat.DATASW:
        is_sign_extend = s and w
        is_data_w = False if is_sign_extend else w
    elif fmt in (InstrFormat.DATA8, InstrFormat.SWALLOW8):
        is_data_w = False
    elif fmt in (InstrFormat.DATA16, InstrFormat.IP_INC16):
        is_data_w = True
    elif fmt == InstrFormat.IP_INC8:
        is_sign_extend = True
        is_data_w = False

    if should_read_data:
        reader = stream.read_signed if is_sign_extend else stream.read
        data = _read(stream, begin, "failed to read data", reader,
                     is_data_w) & 0xFFFF
        if fmt == InstrFormat.SWALLOW8:
            pass
        elif fmt in (InstrFormat.ADDR, InstrFormat.SEG_ADDR):
            ea = EffectiveAddress(kind=EaType.DIRECT, seg=prefixes.seg,
                                  direct_addr=data)
            ops.append(Operand(OperandType.EA, ea=ea))
        elif fmt in (InstrFormat.IP_INC8, InstrFormat.IP_INC16):
            ip_inc = data - 0x10000 if data & 0x8000 else data
            ops.append(Operand(OperandType.IP_INC, ip_inc=ip_inc))
        else:
            ops.append(Operand(OperandType.DATA, data=data))
        if fmt == InstrFormat.SEG_ADDR:
            instr.set_cs_addr = True
            instr.cs_addr = _read(stream, begin,
                                  "failed to read CS segment address",
                                  stream.read_word)

    if len(ops) > 2:
        raise DecodeError("more than 2 operands to the operation", begin)

    if d and len(ops) > 1:
        ops[0], ops[1] = ops[1], ops[0]

    while len(ops) < 2:
        ops.append(Operand())
    instr.ops = ops
    instr.size = stream.pos - begin
    return instr


def decode_instructions(program) -> Iterator[Instruction]:
    """Decode a whole program, yielding instructions in order."""
    stream = ByteStream(program)
    while not stream.at_end():
        yield decode_next_instr(stream)