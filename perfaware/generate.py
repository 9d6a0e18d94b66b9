"""Generator of random coordinate pair files for the haversine average."""

from __future__ import annotations

import re
import sys
from collections import deque
from contextlib import ExitStack
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .haversine import EARTH_RADIUS, haversine

RAND_MAX = 2147483647

CLUSTERS_COUNT = 2

_USAGE = (
    "Generate files with latitude longitude coordinate pairs.\n"
    "    <filename>.json    - JSON file with random coordinates.\n"
    "    <filename>.avg     - verification file with average of distances\n"
    "    <filename>.dists   - verification file with distances per pair\n"
    "\n"
    "Usage:\n"
    "    gen_harvestine <seed> <coord_pair_count> <filename>\n"
)

Pair = Tuple[float, float, float, float]


class GlibcRandom:
    """The additive feedback generator behind the GNU C library's rand()."""

    _DEGREE = 31
    _SEPARATION = 3
    _DISCARD = 310

    def __init__(self, seed: int = 1):
        seed &= 0xFFFFFFFF
        if seed == 0:
            seed = 1
        word = seed - (1 << 32) if seed & 0x80000000 else seed
        state = [word]
        for _ in range(1, self._DEGREE):
            word = self._next_seed_word(word)
            state.append(word)
        state.extend(state[:self._SEPARATION])
        self._buf = deque((v & 0xFFFFFFFF for v in state),
                          maxlen=self._DEGREE + self._SEPARATION)
        for _ in range(self._DISCARD):
            self._advance()

    @staticmethod
    def _next_seed_word(word: int) -> int:
        # 16807 * word mod (2**31 - 1), with truncating division
        hi = abs(word) // 127773
        if word < 0:
            hi = -hi
        lo = word - hi * 127773
        word = 16807 * lo - 2836 * hi
        if word < 0:
            word += 2147483647
        return word

    def _advance(self) -> int:
        value = (self._buf[-self._DEGREE] + self._buf[-self._SEPARATION]) \
            & 0xFFFFFFFF
        self._buf.append(value)
        return value

    def rand(self) -> int:
        """Next value in [0, RAND_MAX]."""
        return self._advance() >> 1


def rand_range(rng, lo: float, hi: float) -> float:
    """Random value between ``lo`` and ``hi`` from ``rng.rand()``."""
    k = rng.rand() / RAND_MAX
    return k * (hi - lo) + lo


class Generated(NamedTuple):
    pairs: List[Pair]
    distances: List[float]
    average: float


def generate(seed: int, pair_count: int) -> Generated:
    """Random coordinate pairs around two random clusters.

    Picking points uniformly makes the average converge to the same value
    for every seed; two clusters spread the averages out.
    """
    rng = GlibcRandom(seed)

    x_min = -180.0 / CLUSTERS_COUNT
    x_max = 180.0 / CLUSTERS_COUNT
    y_min = -90.0 / CLUSTERS_COUNT
    y_max = 90.0 / CLUSTERS_COUNT

    clusters = []
    for _ in range(CLUSTERS_COUNT):
        cx = rand_range(rng, x_min, x_max)
        cy = rand_range(rng, y_min, y_max)
        clusters.append((cx, cy))

    pairs: List[Pair] = []
    distances: List[float] = []
    average = 0.0
    avg_k = 1.0 / pair_count if pair_count > 0 else 0.0
    for _ in range(max(pair_count, 0)):
        idx0 = rng.rand() % CLUSTERS_COUNT
        idx1 = (idx0 + 1) % CLUSTERS_COUNT
        x0 = rand_range(rng, x_min, x_max) + clusters[idx0][0]
        y0 = rand_range(rng, y_min, y_max) + clusters[idx0][1]
        x1 = rand_range(rng, x_min, x_max) + clusters[idx1][0]
        y1 = rand_range(rng, y_min, y_max) + clusters[idx1][1]
        dist = haversine(x0, y0, x1, y1, EARTH_RADIUS)
        average += dist * avg_k
        pairs.append((x0, y0, x1, y1))
        distances.append(dist)

    return Generated(pairs, distances, average)


def _format_json(pairs: Sequence[Pair]) -> str:
    out = ['{\n  "pairs": [\n']
    last = len(pairs) - 1
    for i, (x0, y0, x1, y1) in enumerate(pairs):
        separator = "\n" if i == last else ",\n"
        out.append(f'    {{"x0": {x0:.17f}, "y0": {y0:.17f}, '
                   f'"x1": {x1:.17f}, "y1": {y1:.17f}}}{separator}')
    out.append("  ]\n}\n")
    return "".join(out)


def write_outputs(basename: str, pairs: Sequence[Pair],
                  distances: Sequence[float], average: float) -> None:
    """Write ``basename`` + .json, .avg and .dists files."""
    with ExitStack() as stack:
        out_json = stack.enter_context(
            open(f"{basename}.json", "w", encoding="ascii", newline="\n"))
        out_avg = stack.enter_context(
            open(f"{basename}.avg", "w", encoding="ascii", newline="\n"))
        out_dists = stack.enter_context(
            open(f"{basename}.dists", "w", encoding="ascii", newline="\n"))
        out_json.write(_format_json(pairs))
        out_dists.write("".join(f"{d:f}\n" for d in distances))
        out_avg.write(f"{average:.17f}\n")


def _parse_leading_int(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] == "-h":
        print(_USAGE, file=sys.stderr, end="")
        return 0
    if len(args) < 3:
        print(_USAGE, file=sys.stderr, end="")
        return 1

    seed = _parse_leading_int(args[0])
    pair_count = _parse_leading_int(args[1])
    basename = args[2]

    result = generate(seed, pair_count)
    try:
        write_outputs(basename, result.pairs, result.distances,
                      result.average)
    except OSError as exc:
        print(f"Error: failed to open file '{exc.filename}': {exc.strerror}",
              file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())