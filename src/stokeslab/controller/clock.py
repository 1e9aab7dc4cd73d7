"""Time sources for the measurement stopwatch."""
from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Current time in seconds. Only differences between readings are meaningful."""
        ...


class MonotonicClock:
    """Wall-clock stopwatch used by the interactive app."""

    def now(self) -> float:
        return time.monotonic()


class SimulatedClock:
    """
    Clock that only moves when told to.

    Used by the headless `simulate` command and by the tests: advancing it by
    the same delta that is passed to `tick()` makes the stopwatch agree exactly
    with the simulated fall.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards by {seconds} s.")
        self._now += seconds
        return self._now
