"""Logical clock driving every temporal window check.

The tick is a block height in the platform this core serves. It is
advanced externally and never moves backwards.
"""

from __future__ import annotations

import threading


class LogicalClock:
    """Monotonic, externally advanced tick counter.

    Thread-safe; the core only reads it.

    Args:
        start: Initial tick.
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"Clock cannot start at a negative tick: {start}")
        self._tick = start
        self._lock = threading.Lock()

    @property
    def now(self) -> int:
        """Current tick."""
        with self._lock:
            return self._tick

    def advance(self, ticks: int = 1) -> int:
        """Move the clock forward and return the new tick."""
        if ticks < 0:
            raise ValueError(f"Clock cannot move backwards (advance by {ticks})")
        with self._lock:
            self._tick += ticks
            return self._tick

    def set_tick(self, tick: int) -> None:
        """Jump to an absolute tick at or after the current one."""
        with self._lock:
            if tick < self._tick:
                raise ValueError(f"Clock cannot roll back from {self._tick} to {tick}")
            self._tick = tick
