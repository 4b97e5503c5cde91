"""Request spacing for a single upstream host."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable


class RequestSpacer:
    """Reserves request slots at least ``interval_seconds`` apart.

    Each caller books the next free slot under a lock, releases it and then
    sleeps until the slot arrives, so concurrent requests to one host form a
    queue without holding each other up while waiting.
    """

    def __init__(
        self,
        interval_seconds: float,
        *,
        clock: Callable[[], float] | None = None,
        sleeper: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self._interval = float(interval_seconds)
        self._clock = clock or time.monotonic
        self._sleep = sleeper or asyncio.sleep
        self._lock = asyncio.Lock()
        self._next_free_at: float | None = None
        self.waited_seconds = 0.0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        async with self._lock:
            now = self._clock()
            slot = now if self._next_free_at is None else max(now, self._next_free_at)
            self._next_free_at = slot + self._interval
        delay = slot - now
        if delay > 0:
            self.waited_seconds += delay
            await self._sleep(delay)


__all__ = [
    "RequestSpacer",
]
