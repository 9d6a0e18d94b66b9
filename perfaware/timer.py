"""OS and CPU timers and estimation of the CPU timer frequency."""

from __future__ import annotations

import re
import sys
import time
from typing import Optional, Sequence

_NS_PER_SECOND = 1_000_000_000

_USAGE = "Usage:\n    estimate_cpu_timer_freq <time_to_run_ms>\n"


def get_os_timer_freq() -> int:
    """Ticks per second of the OS timer."""
    return _NS_PER_SECOND


def read_os_timer() -> int:
    """Current value of the monotonic OS timer, in ticks."""
    return time.monotonic_ns()


def get_cpu_timer_freq() -> int:
    """Ticks per second of the high resolution timer, or 0 if unknown."""
    return _NS_PER_SECOND


def read_cpu_timer() -> int:
    """Current value of the highest resolution timer available."""
    return time.perf_counter_ns()


def estimate_cpu_timer_freq(time_to_run_ms: int) -> int:
    """Estimate the CPU timer frequency against the OS timer.

    Busy-waits for about ``time_to_run_ms`` milliseconds.
    """
    if time_to_run_ms < 0:
        raise ValueError("time to run must not be negative")
    os_timer_freq = get_os_timer_freq()
    time_to_run_os_tsc = time_to_run_ms / 1e3 * os_timer_freq

    begin_os_tsc = read_os_timer()
    begin_cpu_tsc = read_cpu_timer()
    while True:
        os_tsc = read_os_timer()
        cpu_tsc = read_cpu_timer()
        elapsed_os = os_tsc - begin_os_tsc
        # Keep going until some time has passed so the ratio is defined.
        if elapsed_os >= time_to_run_os_tsc and elapsed_os > 0:
            break

    elapsed_time_s = elapsed_os / os_timer_freq
    return int((cpu_tsc - begin_cpu_tsc) / elapsed_time_s)


def get_or_estimate_cpu_timer_freq(time_to_run_ms: int) -> int:
    """CPU timer frequency if known, otherwise an estimate of it."""
    freq = get_cpu_timer_freq()
    if not freq:
        freq = estimate_cpu_timer_freq(time_to_run_ms)
    return freq


def _parse_leading_int(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] == "-h":
        print(_USAGE, file=sys.stderr, end="")
        return 0
    if not args:
        print(_USAGE, file=sys.stderr, end="")
        return 1

    time_to_run_ms = _parse_leading_int(args[0])
    if time_to_run_ms < 0:
        print(_USAGE, file=sys.stderr, end="")
        return 1

    os_freq = get_os_timer_freq()
    print(f"OS timer frequency:                   {os_freq} "
          f"({os_freq * 1e-6:.2f}MHz)")
    estimated = estimate_cpu_timer_freq(time_to_run_ms)
    print(f"Estimated CPU timer frequency:        {estimated} "
          f"({estimated * 1e-6:.2f}MHz)")
    cpu_freq = get_cpu_timer_freq()
    print(f"CPU timer frequency from the system:  {cpu_freq} "
          f"({cpu_freq * 1e-6:.2f}MHz)")
    return 0


if __name__ == "__main__":
    sys.exit(main())