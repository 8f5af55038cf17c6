"""Time sources and day-bucket arithmetic."""
from __future__ import annotations

import time

SECONDS_PER_DAY = 86_400


def day_of(timestamp: int) -> int:
    """Return the UTC day bucket ``floor(timestamp / 86400)``."""
    return timestamp // SECONDS_PER_DAY


class Clock:
    """Wall clock returning whole unix seconds."""

    def now(self) -> int:
        return int(time.time())


class FixedClock(Clock):
    """Manually driven clock used by tests and offline tooling."""

    def __init__(self, start: int) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = int(timestamp)

    def advance(self, seconds: int) -> int:
        self._now += int(seconds)
        return self._now


_SYSTEM_CLOCK = Clock()


def get_clock() -> Clock:
    """Return the process-wide wall clock."""
    return _SYSTEM_CLOCK
