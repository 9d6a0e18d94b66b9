"""Repetition tester: run a piece of code repeatedly and keep statistics.

Usage::

    tester = RepetitionTester(try_duration_tsc=seconds * cpu_timer_freq)
    while tester.step():
        tester.zone_begin()
        function_under_test()
        tester.zone_end()
        tester.count_bytes(processed)
    print(tester.format(cpu_timer_freq))
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from .timer import read_cpu_timer

try:
    import resource
except ImportError:  # pragma: no cover - platforms without getrusage
    resource = None

TESTER_DEFAULT_TRY_DURATION_TSC = 240_000_000

_DELIM = "-" * 67


def read_page_fault_count() -> int:
    """Page faults of this process so far; 0 where not measurable."""
    if resource is None:
        return 0
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return usage.ru_minflt + usage.ru_majflt


def _perf_init() -> bool:
    return resource is not None


class TesterState(Enum):
    START_RUN = 0
    RUNNING = 1
    COMPLETED = 2
    ERROR = 3


@dataclass
class TesterValues:
    """Values measured in one step, or accumulated over several."""

    step_count: int = 0
    tsc: int = 0
    byte_count: int = 0
    mem_page_faults: int = 0


@dataclass
class TesterStats:
    """Total, slowest and fastest step values, kept across runs."""

    total: TesterValues = field(default_factory=TesterValues)
    max: TesterValues = field(default_factory=TesterValues)
    min: Optional[TesterValues] = None


def _div(a: float, b: float) -> float:
    if b:
        return a / b
    if a:
        return math.copysign(math.inf, a)
    return math.nan


def _format_titles(csv: bool) -> str:
    titles = ("Stat", "tsc", "ms", "GB/s", "Mem PF", "kB/Mem PF")
    if csv:
        return ",".join(titles) + "\n"
    return (f"{titles[0]:<10}|{titles[1]:>10}|{titles[2]:>10}|"
            f"{titles[3]:>10}|{titles[4]:>12}|{titles[5]:>10}\n")


def _format_values(label: str, values: TesterValues, cpu_timer_freq: int,
                   csv: bool) -> str:
    n = values.step_count
    tsc = int(values.tsc / n) if n else 0
    byte_count = int(values.byte_count / n) if n else 0
    mem_pf = _div(values.mem_page_faults, n)

    sec = _div(tsc, cpu_timer_freq)
    ms = sec * 1e3
    gb_p_sec = _div(byte_count, sec * 1024 * 1024 * 1024)
    kb_p_mem_pf = _div(byte_count, mem_pf * 1024)

    if csv:
        return (f"{label},{tsc},{ms:f},{gb_p_sec:f},{mem_pf:f},"
                f"{kb_p_mem_pf:f}\n")
    return (f"{label:<10}|{tsc:>10}|{ms:10.4f}|{gb_p_sec:10.4f}|"
            f"{mem_pf:12.4f}|{kb_p_mem_pf:10.4f}\n")


def _format_stats(stats: TesterStats, cpu_timer_freq: int, csv: bool) -> str:
    minimum = stats.min if stats.min is not None else TesterValues()
    return "".join((
        _format_values("Min", minimum, cpu_timer_freq, csv),
        _format_values("Max", stats.max, cpu_timer_freq, csv),
        _format_values("Avg", stats.total, cpu_timer_freq, csv),
    ))


class RepetitionTester:
    """Repeats a test until no faster step is seen for ``try_duration_tsc``.

    ``stats`` accumulate across runs; call reset_run() to start a new run.
    ``clock`` and ``page_fault_counter`` are the counters read in zones.
    """

    def __init__(self, try_duration_tsc: int = 0, expected_bytes: int = 0):
        self.try_duration_tsc = try_duration_tsc
        self.expected_bytes = expected_bytes
        self.stats = TesterStats()
        self.clock = read_cpu_timer
        self.page_fault_counter = read_page_fault_count
        self.reset_run()

    def reset_run(self) -> None:
        """Prepare for a new run, keeping accumulated statistics."""
        self.state = TesterState.START_RUN
        self.step_values = TesterValues()
        self.begin_tsc = 0
        self.open_zone_count = 0
        self.error_message: Optional[str] = None

    def step(self) -> bool:
        """Account for the finished step; True while testing should go on."""
        current_tsc = self.clock()

        if self.state == TesterState.START_RUN:
            if not self.try_duration_tsc:
                self.try_duration_tsc = TESTER_DEFAULT_TRY_DURATION_TSC
            self.reset_run()
            self.begin_tsc = current_tsc
            self.state = TesterState.RUNNING
            if not _perf_init():
                self.error("Failed to initialize performance counters. "
                           "Try with super user.")

        elif self.state == TesterState.RUNNING:
            if self.open_zone_count != 0:
                self.error("Unbalanced zone_begin/zone_end")
                return False

            step = self.step_values
            step.step_count += 1
            total = self.stats.total
            total.step_count += step.step_count
            total.tsc += step.tsc
            total.byte_count += step.byte_count
            total.mem_page_faults += step.mem_page_faults

            if self.stats.min is None or step.tsc < self.stats.min.tsc:
                self.stats.min = replace(step)
                # a new minimum restarts the waiting time
                self.begin_tsc = current_tsc

            if self.stats.max.tsc < step.tsc:
                self.stats.max = replace(step)

            if self.expected_bytes and self.expected_bytes != step.byte_count:
                self.error("Processed bytes count mismatch")

            self.step_values = TesterValues()

            if current_tsc - self.begin_tsc > self.try_duration_tsc:
                self.state = TesterState.COMPLETED

        return self.state == TesterState.RUNNING

    def zone_begin(self) -> None:
        """Start measuring the code under test."""
        self.open_zone_count += 1
        self.step_values.tsc -= self.clock()
        self.step_values.mem_page_faults -= self.page_fault_counter()

    def zone_end(self) -> None:
        """Stop measuring the code under test."""
        self.open_zone_count -= 1
        self.step_values.tsc += self.clock()
        self.step_values.mem_page_faults += self.page_fault_counter()

    def count_bytes(self, byte_count: int) -> None:
        """Add processed bytes for bandwidth statistics."""
        self.step_values.byte_count += byte_count

    def error(self, message: str) -> None:
        """Put the tester into the error state."""
        self.state = TesterState.ERROR
        self.error_message = message

    def format(self, cpu_timer_freq: int) -> str:
        """Report of the tester's state and, when completed, its statistics."""
        if self.state == TesterState.START_RUN:
            return "Tester: not running. Call `step()` to begin.\n"
        if self.state == TesterState.RUNNING:
            return "Tester: running...\n"
        if self.state == TesterState.ERROR:
            return f"Tester: error '{self.error_message}'\n"

        out = ["Tester: completed\n", f"{'CPU timer frequency: ':<24}"]
        if cpu_timer_freq:
            out.append(f"{cpu_timer_freq * 1e-6:<4.2f} MHz\n")
        else:
            out.append("???\n")

        if self.expected_bytes:
            out.append(f"{'Bytes to process: ':<24}")
            if cpu_timer_freq:
                out.append(f"{self.expected_bytes / 1024 / 1024:<4.2f} MB\n")
            else:
                out.append("???\n")

        out.append(f"{'Steps taken: ':<24}{self.stats.total.step_count:<4}\n")
        out.append("\n")
        out.append(_format_titles(False))
        out.append(f"{_DELIM}\n")
        out.append(_format_stats(self.stats, cpu_timer_freq, False))
        out.append("\n")
        return "".join(out)