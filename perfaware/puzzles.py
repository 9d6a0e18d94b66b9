"""Bit tricks and buffer exercises: 2-bit colour search and string copy."""

from __future__ import annotations

import sys
from typing import Optional, Sequence, Union

# Each 2-bit colour repeated over a byte and inverted.
_NOT_COLS = (0xFF, 0xAA, 0x55, 0x00)


def has_color(col4: int, col: int) -> bool:
    """Whether any of the four 2-bit colours packed in ``col4`` is ``col``."""
    p4 = _NOT_COLS[col & 3]
    v0 = (col4 ^ p4) & 0xFF   # matching 2-bit colours become 11
    v1 = v0 & 0xAA            # high bit of every 2-bit colour
    v2 = v0 & (v1 >> 1)       # and its low bit
    return v2 != 0


def str_cpy(src: Union[bytes, bytearray, str, None],
            dst: Optional[bytearray]) -> Optional[bytearray]:
    """Copy the NUL terminated string ``src`` into ``dst``.

    Copying stops after the first NUL of ``src`` (or its end, where a NUL is
    added). Nothing happens if either argument is None. Raises ValueError
    when ``dst`` is too small for the string and its terminator.
    """
    if src is None or dst is None:
        return dst
    if isinstance(src, str):
        src = src.encode("utf-8")
    end = src.find(b"\0")
    text = bytes(src if end == -1 else src[:end]) + b"\0"
    if len(text) > len(dst):
        raise ValueError(f"destination of {len(dst)} bytes is too small for "
                         f"{len(text)} bytes")
    dst[:len(text)] = text
    return dst


def _c_str(buf) -> str:
    end = buf.find(b"\0")
    return bytes(buf if end == -1 else buf[:end]).decode("utf-8")


_COLOR_CASES = (
    (0xE4, 0, True), (0xE4, 1, True), (0xE4, 2, True), (0xE4, 3, True),
    (0x02, 0x02, True), (0x08, 0x02, True), (0x20, 0x02, True),
    (0x80, 0x02, True), (0x0F, 0x02, False), (0xF0, 0x02, False),
    (0xFF, 0x02, False), (0x06, 0x02, True), (0x60, 0x02, True),
    (0x66, 0x02, True), (0x05, 0x02, False), (0x50, 0x02, False),
    (0x55, 0x02, False), (0x03, 0x03, True), (0x0C, 0x03, True),
    (0x30, 0x03, True), (0xC0, 0x03, True), (0xFF, 0x03, True),
    (0x00, 0x03, False), (0x55, 0x03, False), (0xFF, 0x02, False),
    (0xFF, 0x00, False),
)

_COPY_CASES = (
    ("", b"\0"),
    ("", b"a\0"),
    ("asd", bytes(8)),
    ("a", b"b\0"),
    ("0123456789ABCDEF0123456789ABCDEF", b"X" * 15 + b"\0"),
    ("0123456789ABCDEF0123456789ABCDEF", b"X" * 31 + b"\0"),
    ("0123456789", b"X" * 31 + b"\0"),
)


def main(argv: Optional[Sequence[str]] = None) -> int:
    ok = True
    for col4, col, expected in _COLOR_CASES:
        r = has_color(col4, col)
        print(f"Colors: '{col4:02X}' contains '{col:X}' color: "
              f"{'true' if r else 'false'}")
        ok = ok and r == expected

    for src, initial in _COPY_CASES:
        dst = bytearray(initial)
        print(f"Before\nsrc: '{src}'\ndst: '{_c_str(dst)}'")
        try:
            str_cpy(src, dst)
        except ValueError as exc:
            print(f"Error: {exc}\n")
            continue
        print(f"After\nsrc: '{src}'\ndst: '{_c_str(dst)}'\n")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())