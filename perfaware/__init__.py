"""8086 decoding and simulation, haversine tools, timers, profiling and puzzles."""

__version__ = "0.1.0"