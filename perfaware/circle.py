"""Circle outline drawing with Bresenham's algorithm on a terminal."""

from __future__ import annotations

import sys
import time
from typing import List, Optional, Sequence, TextIO, Tuple


def plot_sequence(x: int, y: int, rgb: int) -> str:
    """Terminal escapes painting a two-character wide "pixel" at (x, y)."""
    r = (rgb & 0xFF0000) >> 16
    g = (rgb & 0x00FF00) >> 8
    b = rgb & 0x0000FF
    cell = f"\x1b[48;2;{r};{g};{b}m \x1b[0m"
    # the x axis is scaled by two to keep pixels roughly square
    return f"\x1b[{y};{x * 2}H{cell}\x1b[{y};{x * 2 + 1}H{cell}"


def circle_points(cx: int, cy: int, r: int) -> List[Tuple[int, int]]:
    """Outline points of a circle, in drawing order.

    One octant is walked with integer-only differential updates of the
    error term; the other octants are reflections.
    """
    two_r = r + r
    x = r
    y = 0
    d = two_r - 1
    dy = -2
    dx = two_r + two_r - 4

    points = [(cx - x, cy), (cx + x, cy), (cx, cy - x), (cx, cy + x)]
    while y <= x:
        d += dy
        dy -= 4
        y += 1
        if d < 0:
            d += dx
            dx -= 4
            x -= 1
        points.extend((
            (cx + x, cy + y), (cx + x, cy - y),
            (cx - x, cy + y), (cx - x, cy - y),
            (cx + y, cy + x), (cx + y, cy - x),
            (cx - y, cy + x), (cx - y, cy - x),
        ))
    return points


def draw_circle(cx: int, cy: int, r: int, rgb: int,
                out: Optional[TextIO] = None) -> None:
    """Draw a circle outline of colour ``rgb`` to ``out`` (stdout)."""
    stream = sys.stdout if out is None else out
    stream.write("".join(plot_sequence(x, y, rgb)
                         for x, y in circle_points(cx, cy, r)))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Animate circles; an optional argument limits the number of groups."""
    args = list(sys.argv[1:] if argv is None else argv)
    groups = int(args[0]) if args else None
    out = sys.stdout

    for y in range(255):
        out.write("".join(plot_sequence(x, y, 0x000000) for x in range(255)))

    rgb = 0x0000AA
    n = 0
    while groups is None or n < groups:
        cx = 20 + n * 13 % 11
        cy = 23 + n * 11 % 7

        rgb |= 0x0000AA
        rgb = (rgb << (n % 24)) & 0xFFFFFFFF
        n += 1

        for r in range(2, 20):
            draw_circle(cx, cy, r, rgb >> 1, out)
            draw_circle(cx, cy, r >> 1, rgb, out)
            draw_circle(cx, cy, r >> 2, (rgb << 1) & 0xFFFFFFFF, out)

            out.write("\x1b[0;0H")
            out.flush()
            time.sleep(0.05)

            draw_circle(cx, cy, r, 0x0, out)
            draw_circle(cx, cy, r >> 1, 0x0, out)
            draw_circle(cx, cy, r >> 2, 0x0, out)

    out.write("\x1b[999;0H")
    return 0


if __name__ == "__main__":
    sys.exit(main())