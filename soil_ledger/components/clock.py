"""
Clock sources for submission times.

The service treats the clock as an opaque, non-decreasing integer that it
reads exactly once per submission.
"""

import threading
import time


def wall_clock() -> int:
    """Whole seconds since the epoch."""
    return int(time.time())


class ManualClock:
    """Clock advanced explicitly, like a block height."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"Clock cannot start below zero, got {start}")
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> int:
        return self._now

    def advance(self, ticks: int = 1) -> int:
        if ticks < 0:
            raise ValueError("Clock cannot move backwards")
        with self._lock:
            self._now += ticks
            return self._now

    def set(self, value: int) -> None:
        """Jump to an absolute value. Tests use this to replay a tick."""
        if value < 0:
            raise ValueError(f"Clock value must be non-negative, got {value}")
        with self._lock:
            self._now = value
