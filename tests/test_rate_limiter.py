"""
Tests for the shared inference rate limiter.
"""

import asyncio

import pytest

from promo_scraper.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class RecordingSleep:
    """Records requested delays and advances the fake clock by them."""

    def __init__(self, clock):
        self.clock = clock
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        self.clock.now += delay
        await asyncio.sleep(0)


def make_limiter(max_requests, delay):
    clock = FakeClock()
    sleep = RecordingSleep(clock)
    return RateLimiter(max_requests=max_requests, delay=delay, sleep=sleep, clock=clock), clock, sleep


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_budget_then_wait(self):
        limiter, _, sleep = make_limiter(3, 20)

        for _ in range(3):
            await limiter.acquire()
        assert sleep.delays == []
        assert limiter.used == 3

        await limiter.acquire()
        assert sleep.delays == [20]
        assert limiter.used == 1

    @pytest.mark.asyncio
    async def test_waits_once_per_exhausted_budget(self):
        limiter, _, sleep = make_limiter(3, 5)
        for _ in range(7):
            await limiter.acquire()
        assert sleep.delays == [5, 5]
        assert limiter.waits == 2
        assert limiter.calls == 7

    @pytest.mark.asyncio
    async def test_idle_longer_than_window_never_waits(self):
        limiter, clock, sleep = make_limiter(1, 20)

        await limiter.acquire()
        clock.now += 30
        await limiter.acquire()

        assert sleep.delays == []
        assert limiter.waits == 0
        assert limiter.used == 1

    @pytest.mark.asyncio
    async def test_waits_only_for_rest_of_window(self):
        limiter, clock, sleep = make_limiter(2, 20)

        await limiter.acquire()
        clock.now += 5
        await limiter.acquire()
        clock.now += 3
        await limiter.acquire()

        assert sleep.delays == [12]
        assert limiter.used == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_budget(self):
        limiter, _, sleep = make_limiter(3, 1)

        await asyncio.gather(*(limiter.acquire() for _ in range(6)))

        assert limiter.waits == 1
        assert sleep.delays == [1]
        assert limiter.used == 3

    @pytest.mark.asyncio
    async def test_real_delay_suspends_caller(self):
        limiter = RateLimiter(max_requests=1, delay=0.05)
        loop = asyncio.get_running_loop()
        await limiter.acquire()
        start = loop.time()
        await limiter.acquire()
        assert loop.time() - start >= 0.03

    @pytest.mark.asyncio
    async def test_real_idle_skips_wait(self):
        limiter = RateLimiter(max_requests=1, delay=0.1)
        loop = asyncio.get_running_loop()
        await limiter.acquire()
        await asyncio.sleep(0.15)
        start = loop.time()
        await limiter.acquire()
        assert loop.time() - start < 0.05
        assert limiter.waits == 0

    @pytest.mark.asyncio
    async def test_context_manager_draws_budget(self):
        limiter = RateLimiter(max_requests=2, delay=0)
        async with limiter:
            pass
        assert limiter.calls == 1

    def test_rejects_empty_budget(self):
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0)
