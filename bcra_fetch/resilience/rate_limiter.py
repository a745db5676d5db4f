"""Fixed Window Rate Limiter.

Admits at most `max_requests` acquisitions per `window` seconds:
- Requests under quota are admitted immediately
- Excess requests wait in a FIFO queue
- A single timer tick at the window boundary resets the window and
  wakes as many queued waiters as the new window admits

Backpressure is expressed purely as delay; acquire() never raises.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from bcra_fetch.observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimiter:
    """Fixed window rate limiter.

    Usage:
        limiter = RateLimiter(max_requests=60, window=60.0)

        # Acquire before making request
        await limiter.acquire()
        await make_request()
    """

    # Configuration
    max_requests: int = 60
    window: float = 60.0  # seconds
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    # State
    _count: int = field(default=0, init=False)
    _window_started_at: float = field(init=False)
    _waiters: deque[asyncio.Future[None]] = field(default_factory=deque, init=False)
    _tick: asyncio.TimerHandle | None = field(default=None, init=False, repr=False)
    _tick_loop: asyncio.AbstractEventLoop | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        """Start the first window."""
        self._window_started_at = self.clock()

    async def acquire(self) -> float:
        """Acquire one slot in the current window.

        Waits until a window with free quota is available.

        Returns:
            Wait time in seconds (0 if no wait needed)
        """
        loop = asyncio.get_running_loop()
        self._prune(loop)
        self._roll_window()

        if not self._waiters and self._count < self.max_requests:
            self._count += 1
            return 0.0

        waiter: asyncio.Future[None] = loop.create_future()
        self._waiters.append(waiter)
        self._schedule_tick(loop)

        logger.info(
            "Rate limit reached, request queued",
            extra={"queued": len(self._waiters), "max_requests": self.max_requests},
        )

        started = self.clock()
        try:
            await waiter
        except asyncio.CancelledError:
            if not waiter.done():
                waiter.cancel()
            raise
        return self.clock() - started

    def _roll_window(self) -> None:
        """Reset the counter if the current window has elapsed."""
        now = self.clock()
        if now - self._window_started_at >= self.window:
            self._count = 0
            self._window_started_at = now

    def _prune(self, loop: asyncio.AbstractEventLoop) -> None:
        """Drop cancelled waiters and state left behind by another event loop."""
        if self._tick is not None and self._tick_loop is not loop:
            self._tick.cancel()
            self._tick = None
        self._waiters = deque(
            w for w in self._waiters if not w.done() and w.get_loop() is loop
        )

    def _schedule_tick(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._tick is not None:
            return
        self._tick_loop = loop
        delay = max(0.0, self.window - (self.clock() - self._window_started_at))
        self._tick = loop.call_later(delay, self._on_tick, loop)

    def _on_tick(self, loop: asyncio.AbstractEventLoop) -> None:
        """Window boundary: release queued waiters in FIFO order."""
        self._tick = None
        self._roll_window()

        while self._waiters and self._count < self.max_requests:
            waiter = self._waiters.popleft()
            if waiter.done():
                # Cancelled while queued
                continue
            self._count += 1
            waiter.set_result(None)

        if self._waiters:
            self._schedule_tick(loop)

    @property
    def pending(self) -> int:
        """Number of callers waiting for a slot."""
        return sum(1 for w in self._waiters if not w.done())

    @property
    def available(self) -> int:
        """Remaining slots in the current window (approximate)."""
        if self.clock() - self._window_started_at >= self.window:
            return self.max_requests
        return max(0, self.max_requests - self._count)
