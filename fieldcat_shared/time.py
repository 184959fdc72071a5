"""
Time utilities for performance measurement.
"""
from __future__ import annotations

import time


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds, for durations only."""
    return time.perf_counter() * 1000.0

def elapsed_ms(start_ms: float) -> int:
    """Milliseconds elapsed since a `monotonic_ms()` reading, never negative."""
    return max(0, int(round(monotonic_ms() - start_ms)))
