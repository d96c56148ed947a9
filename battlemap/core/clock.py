"""Time sources for animation suspension.

The pipeline never sleeps directly. It awaits a Clock, so production code runs
on the event loop's monotonic time while tests use ManualClock, which jumps
forward instantly and makes every animation deterministic.
"""

import asyncio
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Monotonic millisecond clock with an awaitable sleep."""

    @abstractmethod
    def now_ms(self) -> float:
        """Current time in milliseconds."""

    @abstractmethod
    async def sleep_ms(self, duration_ms: float) -> None:
        """Suspend for duration_ms."""


class AsyncioClock(Clock):
    """Wall-clock time backed by asyncio.sleep."""

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    async def sleep_ms(self, duration_ms: float) -> None:
        await asyncio.sleep(max(0.0, duration_ms) / 1000.0)


class ManualClock(Clock):
    """Clock that advances only when someone sleeps on it.

    Sleeping moves time forward by the requested amount and yields once to the
    event loop, so a 3 second animation completes immediately in tests while
    still observing every intermediate frame.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self.total_slept_ms = 0.0

    def now_ms(self) -> float:
        return self._now

    async def sleep_ms(self, duration_ms: float) -> None:
        duration_ms = max(0.0, duration_ms)
        self._now += duration_ms
        self.total_slept_ms += duration_ms
        await asyncio.sleep(0)

    def advance(self, duration_ms: float) -> None:
        """Move time forward without sleeping."""
        self._now += max(0.0, duration_ms)
