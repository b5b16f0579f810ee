"""
Process-wide throttle for calls to the selector inference service.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from .logging_utils import log_event

logger = logging.getLogger(__name__)

MAX_REQUESTS_PER_MINUTE = 3
RATE_LIMIT_DELAY = 20.0


class RateLimiter:
    """
    Fixed-window budget: at most `max_requests` calls per window of `delay`
    seconds. A caller that finds the budget spent is suspended until the
    window closes, then a fresh window starts.

    One instance is shared by every session of a batch. The lock is held
    across the suspension so waiting callers queue behind it in order and
    the counter is never read or reset concurrently.
    """

    def __init__(
        self,
        max_requests: int = MAX_REQUESTS_PER_MINUTE,
        delay: float = RATE_LIMIT_DELAY,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.delay = max(0.0, delay)
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic
        self._window_start: Optional[float] = None
        self._used = 0
        self._calls = 0
        self._waits = 0
        self._lock = asyncio.Lock()

    @property
    def used(self) -> int:
        """Calls drawn from the current window."""
        return self._used

    @property
    def calls(self) -> int:
        """Calls drawn since the limiter was created."""
        return self._calls

    @property
    def waits(self) -> int:
        """How many times the budget ran out and a caller was suspended."""
        return self._waits

    def _start_window(self, now: float) -> None:
        self._window_start = now
        self._used = 0

    async def acquire(self) -> None:
        """Take one call from the budget, waiting out the window if it is spent."""
        async with self._lock:
            now = self._clock()
            if self._window_start is None or now - self._window_start >= self.delay:
                self._start_window(now)

            if self._used >= self.max_requests:
                remaining = self.delay - (now - self._window_start)
                self._waits += 1
                log_event(
                    logger, logging.INFO, "rate_limit_wait",
                    delay_seconds=round(remaining, 3), budget=self.max_requests,
                )
                await self._sleep(remaining)
                self._start_window(self._clock())

            self._used += 1
            self._calls += 1

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False
