# core/clock.py
import time
from typing import Final

# 100 ns ticks between 1601-01-01 (FILETIME epoch) and the Unix epoch.
EPOCH_OFFSET_TICKS: Final[int] = 116444736000000000
TICKS_PER_SECOND: Final[int] = 10_000_000


def seconds_to_ticks(seconds: float) -> int:
    return int(seconds * TICKS_PER_SECOND)


class SystemClock:
    """Wall clock in 100 ns ticks since 1601, the unit stored as ping times."""

    def now(self) -> int:
        return EPOCH_OFFSET_TICKS + time.time_ns() // 100


class FixedClock:
    """Settable clock for deterministic scheduling."""

    def __init__(self, now: int = EPOCH_OFFSET_TICKS) -> None:
        self._now = int(now)

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = int(now)

    def advance(self, ticks: int) -> None:
        self._now += int(ticks)
