"""Instrumentation profiler with nested, indexed zones."""

from __future__ import annotations

import math
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from .timer import read_cpu_timer

PROFILER_ZONES_SIZE_MAX = 4096

_DELIM = "-" * 100


@dataclass
class ProfilerZone:
    """Accumulated measurements of one zone."""

    name: Optional[str] = None
    hit_count: int = 0
    self_tsc: int = 0
    total_tsc: int = 0
    byte_count: int = 0


@dataclass(frozen=True)
class ZoneMark:
    """What is remembered when a zone begins, to be settled when it ends."""

    name: str
    begin_tsc: int
    prev_total_tsc: int
    index: int
    parent_index: int
    byte_count: int


def _div(a: float, b: float) -> float:
    if b:
        return a / b
    if a:
        return math.copysign(math.inf, a)
    return math.nan


class Profiler:
    """Collects time spent in zones; index 1 is the main zone.

    ``clock`` is the timer read at zone boundaries.
    """

    def __init__(self, max_zones: int = PROFILER_ZONES_SIZE_MAX):
        self.max_zones = max_zones
        self.zones: Dict[int, ProfilerZone] = {}
        self.clock = read_cpu_timer
        self._total_mark: Optional[ZoneMark] = None
        self._last_zone_index = 0

    def _zone(self, index: int) -> ProfilerZone:
        return self.zones.setdefault(index, ProfilerZone())

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.max_zones:
            raise IndexError(f"zone index {index} out of bounds")

    def begin(self) -> None:
        """Start profiling the main zone."""
        self._total_mark = self.zone_begin(1, "Main", 0)

    def end(self) -> None:
        """Finish profiling the main zone."""
        if self._total_mark is None:
            raise RuntimeError("profiler end() called before begin()")
        self.zone_end(self._total_mark)
        self._total_mark = None

    def zone_begin(self, index: int, name: str, bytes_count: int) -> ZoneMark:
        """Start a zone stored at ``index`` that processes ``bytes_count``."""
        self._check_index(index)
        prev_total = self.zones[index].total_tsc if index in self.zones else 0
        mark = ZoneMark(name, self.clock(), prev_total, index,
                        self._last_zone_index, bytes_count)
        self._last_zone_index = index
        return mark

    def zone_end(self, mark: ZoneMark) -> None:
        """End a zone started with zone_begin()."""
        self._check_index(mark.index)
        if mark.begin_tsc == 0:
            raise ValueError("ending zone that has not begun")
        elapsed = self.clock() - mark.begin_tsc

        zone = self._zone(mark.index)
        zone.name = mark.name
        zone.hit_count += 1
        zone.self_tsc += elapsed
        zone.total_tsc = mark.prev_total_tsc + elapsed
        zone.byte_count += mark.byte_count

        self._zone(mark.parent_index).self_tsc -= elapsed
        self._last_zone_index = mark.parent_index

    @contextmanager
    def zone(self, index: int, name: str,
             bytes_count: int = 0) -> Iterator[ZoneMark]:
        """Profile the body of a ``with`` block as a zone."""
        mark = self.zone_begin(index, name, bytes_count)
        try:
            yield mark
        finally:
            self.zone_end(mark)

    @staticmethod
    def _format_titles(csv: bool) -> str:
        titles = ("Zone", "Hits #", "Total s", "Total%", "Self tsc",
                  "Self s", "Self %", "Data MB", "GB/s")
        if csv:
            return ",".join(titles) + "\n"
        widths = (9, 9, 6, 11, 9, 6, 7, 5)
        rest = "".join(f"|{t:>{w}}" for t, w in zip(titles[1:], widths))
        return f"{titles[0]:<30}{rest}\n"

    @staticmethod
    def _format_zone(zone: ProfilerZone, total_tsc: int,
                     cpu_timer_freq: int, csv: bool) -> str:
        total_percent = _div(zone.total_tsc, total_tsc) * 100.0
        self_percent = _div(zone.self_tsc, total_tsc) * 100.0
        total_sec = _div(zone.total_tsc, cpu_timer_freq)
        self_sec = _div(zone.self_tsc, cpu_timer_freq)
        mb = zone.byte_count / (1024 * 1024)
        gb_p_sec = _div(zone.byte_count, total_sec) / (1024 * 1024 * 1024)

        if csv:
            return (f"{zone.name},{zone.hit_count},{total_sec:f},"
                    f"{total_percent:f},{zone.self_tsc},{self_sec:f},"
                    f"{self_percent:f},{mb:f},{gb_p_sec:f}\n")
        return (f"{zone.name:<30}|{zone.hit_count:>9}|{total_sec:9.5f}"
                f"|{total_percent:6.2f}|{zone.self_tsc:>11}|{self_sec:9.5f}"
                f"|{self_percent:6.2f}|{mb:7.2f}|{gb_p_sec:5.2f}\n")

    def format_stats(self, cpu_timer_freq: int, csv: bool = False) -> str:
        """Statistics table of all named zones, as text or CSV."""
        total_tsc = self.zones[1].total_tsc if 1 in self.zones else 0
        total_sec = _div(total_tsc, cpu_timer_freq)
        out = []

        if not csv:
            out.append(f"{_DELIM}\n")
            out.append("Instrumentation Profiler Stats\n")
            out.append(f"{_DELIM}\n")
            out.append(f"{'CPU timer frequency: ':<24}")
            if cpu_timer_freq:
                out.append(f"{cpu_timer_freq * 1e-6:<4.2f} MHz\n")
            else:
                out.append("???\n")
            out.append(f"{'Total time: ':<24}")
            if total_tsc:
                out.append(f"{total_tsc:<12} ({total_sec:9.5f} sec)\n")
            else:
                out.append("??? [!] begin() / end() not called\n")
            out.append("\n")
            out.append(f"{_DELIM}\n")

        out.append(self._format_titles(csv))
        if not csv:
            out.append(f"{_DELIM}\n")

        for index in sorted(self.zones):
            zone = self.zones[index]
            if index >= 1 and zone.name:
                out.append(self._format_zone(zone, total_tsc,
                                             cpu_timer_freq, csv))

        if not csv:
            out.append(f"{_DELIM}\n\n")
        return "".join(out)

    def print_stats(self, cpu_timer_freq: int, csv: bool = False) -> None:
        """Write the statistics table to stderr."""
        sys.stderr.write(self.format_stats(cpu_timer_freq, csv))