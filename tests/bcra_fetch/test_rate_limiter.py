"""Tests for bcra_fetch/resilience/rate_limiter.py.

Uses short real windows so the timer tick actually fires.
"""

import asyncio
import time

import pytest

from bcra_fetch.resilience import RateLimiter


class TestRateLimiter:
    """Fixed window quota and FIFO release."""

    @pytest.mark.asyncio
    async def test_admits_under_quota_immediately(self):
        limiter = RateLimiter(max_requests=3, window=10.0)

        waits = [await limiter.acquire() for _ in range(3)]

        assert waits == [0.0, 0.0, 0.0]
        assert limiter.available == 0

    @pytest.mark.asyncio
    async def test_excess_request_waits_for_window_rollover(self):
        limiter = RateLimiter(max_requests=2, window=0.2)
        started = time.monotonic()

        await limiter.acquire()
        await limiter.acquire()
        waited = await limiter.acquire()

        elapsed = time.monotonic() - started
        assert waited > 0
        assert elapsed >= 0.15

    @pytest.mark.asyncio
    async def test_queued_waiters_released_in_fifo_order(self):
        limiter = RateLimiter(max_requests=1, window=0.1)
        order: list[int] = []

        async def worker(n: int) -> None:
            await limiter.acquire()
            order.append(n)

        await asyncio.gather(*(worker(n) for n in range(4)))

        assert order == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_never_exceeds_quota_in_one_window(self):
        limiter = RateLimiter(max_requests=2, window=0.2)
        admitted_at: list[float] = []

        async def worker() -> None:
            await limiter.acquire()
            admitted_at.append(time.monotonic())

        await asyncio.gather(*(worker() for _ in range(5)))

        admitted_at.sort()
        for i in range(len(admitted_at) - 2):
            # Any 3 admissions span at least one window boundary
            assert admitted_at[i + 2] - admitted_at[i] >= 0.15

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_consume_slot(self):
        limiter = RateLimiter(max_requests=1, window=0.1)
        await limiter.acquire()

        cancelled = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        cancelled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cancelled

        assert limiter.pending == 0
        waited = await limiter.acquire()
        assert waited > 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_block_free_quota(self, clock):
        limiter = RateLimiter(max_requests=1, window=10.0, clock=clock)
        await limiter.acquire()

        cancelled = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        cancelled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cancelled

        clock.advance(10.0)
        assert await limiter.acquire() == 0.0

    def test_reusable_across_event_loops(self):
        limiter = RateLimiter(max_requests=1, window=0.05)

        async def leave_waiter_queued() -> None:
            await limiter.acquire()
            asyncio.create_task(limiter.acquire())
            await asyncio.sleep(0)

        async def acquire_twice() -> float:
            async def both() -> float:
                await limiter.acquire()
                return await limiter.acquire()

            return await asyncio.wait_for(both(), timeout=1.0)

        asyncio.run(leave_waiter_queued())

        assert asyncio.run(acquire_twice()) >= 0.0
        assert limiter.pending == 0
