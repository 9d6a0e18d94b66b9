"""Coordinate pair JSON parser and haversine distance average."""

from __future__ import annotations

import math
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .haversine import EARTH_RADIUS, haversine
from .profiler import Profiler
from .timer import get_or_estimate_cpu_timer_freq

COORDS_SIZE_MAX = 10 * 4 * 1024 * 1024

_WHITESPACE = frozenset(b" \t\r\n\v\f")
_LINE_BREAKS = frozenset(b"\t\r\n\v")

_HEX_FLOAT = re.compile(
    rb"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)"
    rb"(?:[pP][+-]?\d+)?")
_DEC_FLOAT = re.compile(
    rb"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
    rb"|[iI][nN][fF](?:[iI][nN][iI][tT][yY])?|[nN][aA][nN])")

_USAGE = "Usage:\n    harvestine <in_filename> <out_filename>\n"

Pair = Tuple[float, float, float, float]


class ParseError(ValueError):
    """Raised when the input is not the expected coordinate pair JSON."""


class JsonWalker:
    """Predictive parser cursor over a byte buffer."""

    def __init__(self, data: Union[bytes, bytearray, str]):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = bytes(data)
        self.pos = 0

    def skip_whitespace(self) -> None:
        data, n = self.data, len(self.data)
        while self.pos < n and data[self.pos] in _WHITESPACE:
            self.pos += 1

    def accept_char(self, c: str) -> bool:
        """Consume ``c`` after optional whitespace; False if not there."""
        self.skip_whitespace()
        if self.pos < len(self.data) and self.data[self.pos] == ord(c):
            self.pos += 1
            return True
        return False

    def accept_string(self) -> Optional[str]:
        """Consume a double-quoted string and return its contents."""
        self.skip_whitespace()
        if not self.accept_char('"'):
            return None
        start, n = self.pos, len(self.data)
        if start >= n:
            return None
        close = self.data.find(b'"', start)
        if close == -1:
            # unterminated: everything but the final byte
            key = self.data[start:n - 1]
            self.pos = n
        else:
            key = self.data[start:close]
            self.pos = close + 1
        return key.decode("latin-1")

    def accept_float(self) -> Optional[float]:
        """Consume a number in any form strtod accepts; None if absent."""
        self.skip_whitespace()
        match = _HEX_FLOAT.match(self.data, self.pos)
        if match:
            value = float.fromhex(match.group().decode("ascii"))
        else:
            match = _DEC_FLOAT.match(self.data, self.pos)
            if not match:
                return None
            value = float(match.group().decode("ascii"))
        self.pos = match.end()
        return value

    def expect_char(self, c: str) -> None:
        if not self.accept_char(c):
            got = (chr(self.data[self.pos]) if self.pos < len(self.data)
                   else "EOF")
            raise ParseError(
                f"expected '{c}' at position {self.pos}, got '{got}'")

    def expect_float(self) -> float:
        value = self.accept_float()
        if value is None:
            raise ParseError(f"expected f64 at position {self.pos}")
        return value


def key_to_coord_index(key: Optional[str]) -> Optional[int]:
    """Index of "x0", "y0", "x1", "y1" in a pair, or None for other keys."""
    if key is None or len(key) != 2:
        return None
    c = {"x": 0, "y": 1}.get(key[0])
    k = {"0": 0, "1": 2}.get(key[1])
    if c is None or k is None:
        return None
    return k + c


def _is_pairs(key: Optional[str]) -> bool:
    # the key is compared only over its own length
    return "pairs".startswith(key or "")


def _unexpected_key_message(walker: JsonWalker, key: Optional[str]) -> str:
    key = key or ""
    data, n = walker.data, len(walker.data)
    pos = walker.pos - len(key)
    lo = min(max(pos - 32, 0), n)
    hi = min(max(pos + 48, 0), n)

    # show only surrounding text that keeps the caret aligned
    left = pos
    while left - 1 >= lo and not (left < n and data[left] in _LINE_BREAKS):
        left -= 1

    width = pos - left
    segment = data[left:hi].decode("latin-1")
    return (f'unexpected key "{key}" at position {pos}.\n\n'
            f"    {'|'.rjust(width)}\n"
            f"    {'v'.rjust(width)}\n"
            f"    {segment}\n\n")


def parse_coords_json(data: Union[bytes, bytearray, str]) -> List[Pair]:
    """Parse ``{"pairs": [{"x0":..,"y0":..,"x1":..,"y1":..}, ...]}``.

    Missing coordinates of a pair default to 0.
    """
    walker = JsonWalker(data)
    walker.expect_char("{")

    key = walker.accept_string()
    if not _is_pairs(key):
        raise ParseError(_unexpected_key_message(walker, key)
                         + 'Expected keys: "pairs"')
    walker.expect_char(":")
    walker.expect_char("[")

    pairs: List[Pair] = []
    while not walker.accept_char("]"):
        walker.expect_char("{")
        coords = [0.0, 0.0, 0.0, 0.0]
        while not walker.accept_char("}"):
            key = walker.accept_string()
            index = key_to_coord_index(key)
            if index is None:
                raise ParseError(_unexpected_key_message(walker, key)
                                 + 'Expected keys "x0", "y0", "x1" or "y1"')
            walker.expect_char(":")
            coords[index] = walker.expect_float()
            walker.accept_char(",")
        walker.accept_char(",")

        if 4 * len(pairs) + 4 < COORDS_SIZE_MAX:
            pairs.append((coords[0], coords[1], coords[2], coords[3]))
        else:
            raise ParseError("not enough memory to store coordinates")

    walker.expect_char("}")
    return pairs


def average_haversine(coords: Sequence[Pair]) -> float:
    """Average haversine distance over coordinate pairs."""
    if not coords:
        raise ValueError("no coordinate pairs to average")
    avg = 0.0
    avg_k = 1.0 / len(coords)
    for x0, y0, x1, y1 in coords:
        avg += haversine(x0, y0, x1, y1, EARTH_RADIUS) * avg_k
    return avg


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] == "-h":
        print(_USAGE, file=sys.stderr, end="")
        return 0
    if len(args) < 2:
        print(_USAGE, file=sys.stderr, end="")
        return 1

    in_filename, out_filename = args[0], args[1]
    profiler = Profiler()
    profiler.begin()

    try:
        with profiler.zone(2, "read_file", 0):
            data = Path(in_filename).read_bytes()
    except OSError as exc:
        print(f"Error: {exc.strerror}", file=sys.stderr)
        print(f"Error: failed to read '{in_filename}'.", file=sys.stderr)
        return 1

    try:
        with profiler.zone(3, "parse_coords_json", len(data)):
            coords = parse_coords_json(data)
        with profiler.zone(4, "average_haversine", len(coords) * 4 * 8):
            avg = average_haversine(coords)
    except ValueError as exc:
        print(f"Parser error: {exc}", file=sys.stderr)
        print(f"Error: failed to parse json file '{in_filename}'.",
              file=sys.stderr)
        return 1

    profiler.end()
    profiler.print_stats(get_or_estimate_cpu_timer_freq(300), False)

    try:
        Path(out_filename).write_text(f"{avg:.17f}\n", encoding="ascii")
    except OSError as exc:
        print(f"Error: failed to open file '{out_filename}': {exc.strerror}",
              file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())