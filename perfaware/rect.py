"""Rectangular copy between byte buffers laid out row by row."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

BUF_A_W, BUF_A_H = 24, 24
BUF_B_W, BUF_B_H = 32, 16


def sign(a: int) -> int:
    """-1 for negative 32-bit integers, +1 for zero and positive ones."""
    value = ((a + 0x80000000) & 0xFFFFFFFF) - 0x80000000
    return 1 | (value >> 31)


def clamp(x: int, lo: int, hi: int) -> int:
    """``x`` limited to the range [lo, hi]."""
    if x <= lo:
        return lo
    if x >= hi:
        return hi
    return x


def _checked(index: int, buf, name: str) -> int:
    if not 0 <= index < len(buf):
        raise IndexError(f"{name} index {index} outside of buffer "
                         f"of size {len(buf)}")
    return index


def cp_rect(src, src_pitch: int, dst, dst_pitch: int,
            src_x0: int, src_y0: int, src_x1: int, src_y1: int,
            dst_x0: int, dst_y0: int):
    """Copy the source rectangle [x0, x1] x [y0, y1] into ``dst``.

    The copy walks from (x0, y0) towards (x1, y1), so reversed corners
    mirror the rectangle. Pitch is the distance between an element and the
    one in the same column on the next row. Rows are cut to fit the
    destination width. ``dst`` is modified in place and returned.
    """
    src_min_x = clamp(min(src_x0, src_x1), 0, src_pitch)
    src_max_x = clamp(max(src_x0, src_x1), 0, src_pitch)
    src_min_y = max(min(src_y0, src_y1), 0)
    src_max_y = max(src_y0, src_y1)

    w = src_max_x - src_min_x + 1
    h = src_max_y - src_min_y + 1
    w = clamp(dst_pitch - dst_x0, 0, w)

    src_dx = sign(src_x1 - src_x0)
    src_dy = sign(src_y1 - src_y0)
    src_dpitch = src_dy * src_pitch - w * src_dx
    dst_dpitch = dst_pitch - w

    s = src_y0 * src_pitch + src_x0
    d = dst_y0 * dst_pitch + dst_x0
    for _ in range(h):
        for _ in range(w):
            dst[_checked(d, dst, "destination")] = \
                src[_checked(s, src, "source")]
            s += src_dx
            d += 1
        s += src_dpitch
        d += dst_dpitch
    return dst


def init_buf(w: int, h: int) -> bytearray:
    """Buffer whose every byte holds its own (truncated) position."""
    return bytearray(i & 0xFF for i in range(w * h))


def format_buf(buf, w: int, h: int) -> str:
    """Hex dump of a ``w`` x ``h`` buffer with row and column headers."""
    out = ["    ", "".join(f"{i:2X} " for i in range(w)),
           "\n----", "---" * w, "\n"]
    for y in range(h):
        row = buf[y * w:(y + 1) * w]
        out.append(f"{y:2X}: " + "".join(f"{b:02X} " for b in row) + "\n")
    out.append("\n")
    return "".join(out)


def main(argv: Optional[Sequence[str]] = None) -> int:
    buf_a = init_buf(BUF_A_W, BUF_A_H)
    print(f"Buffer A [{BUF_A_W} x {BUF_A_H}]")
    print(format_buf(buf_a, BUF_A_W, BUF_A_H), end="")

    buf_b = bytearray([0xBB]) * (BUF_B_W * BUF_B_H)
    print(f"Buffer B [{BUF_B_W} x {BUF_B_H}]")

    copies = (
        (1, 2, 8, 9, 4, 6),
        (BUF_A_W - 1, 5, 0, 0, 18, 1),
        (5, 0, 0, 5, 15, 10),
        (0, 0, 128, BUF_B_H - 1, 28, 0),
    )
    for x0, y0, x1, y1, dx0, dy0 in copies:
        cp_rect(buf_a, BUF_A_W, buf_b, BUF_B_W, x0, y0, x1, y1, dx0, dy0)
        print(format_buf(buf_b, BUF_B_W, BUF_B_H), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())