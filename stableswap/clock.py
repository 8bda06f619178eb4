"""Time sources.

Ramp interpolation and rate freshness checks read time through a Clock so
tests and simulations can drive it explicitly. Time is whole seconds and
never moves backwards.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from stableswap.errors import ClockWentBackwards


@runtime_checkable
class Clock(Protocol):
    """Source of the current timestamp in seconds."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time, clamped so it never goes backwards."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        current = max(int(time.time()), self._last)
        self._last = current
        return current


class ManualClock:
    """Explicitly driven clock for tests and simulations."""

    def __init__(self, start: int = 1_680_220_800) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ClockWentBackwards(f"Cannot advance clock by {seconds} seconds")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ClockWentBackwards(f"Cannot move clock from {self._now} back to {timestamp}")
        self._now = timestamp
        return self._now
