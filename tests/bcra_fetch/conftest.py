"""Pytest fixtures for fetch layer tests."""

from datetime import datetime
from zoneinfo import ZoneInfo

import fakeredis
import pytest

from bcra_fetch.cache import FallbackStore, TieredCache
from bcra_fetch.pipeline import FetchOrchestrator, ResilienceConfig
from bcra_fetch.resilience import CircuitBreaker, RateLimiter, RetryExecutor
from bcra_fetch.sources.models import BCRAResponse

from .fixtures.bcra_responses import BCRA_MONETARY_SNAPSHOT

BUENOS_AIRES = ZoneInfo("America/Argentina/Buenos_Aires")


class FakeClock:
    """Monotonic clock advanced manually by tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallClock:
    """Wall clock in the checkpoint time zone, advanced manually by tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock(datetime(2025, 3, 14, 10, 0, tzinfo=BUENOS_AIRES))


@pytest.fixture
def snapshot() -> BCRAResponse:
    return BCRAResponse.model_validate(BCRA_MONETARY_SNAPSHOT)


@pytest.fixture
def fake_redis():
    """Async Redis double backed by fakeredis."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def make_orchestrator(clock, wall_clock):
    """Build an orchestrator with deterministic clocks and no real sleeps."""

    def _make(fallback: FallbackStore | None = None, **overrides) -> FetchOrchestrator:
        config = ResilienceConfig(**overrides)
        return FetchOrchestrator(
            config=config,
            circuit_breaker=CircuitBreaker(
                failure_threshold=config.circuit_failure_threshold,
                reset_timeout=config.circuit_reset_timeout,
                clock=clock,
            ),
            rate_limiter=RateLimiter(
                max_requests=config.rate_limit_max_requests,
                window=config.rate_limit_window,
            ),
            retry=RetryExecutor(
                max_retries=config.max_retries,
                base_delay=config.retry_delay,
                sleep=no_sleep,
            ),
            cache=TieredCache(
                max_ttl=config.cache_max_ttl,
                error_ttl=config.error_ttl,
                refresh_hours=config.refresh_hours,
                timezone=config.refresh_timezone,
                clock=wall_clock,
            ),
            fallback=fallback or FallbackStore(),
        )

    return _make
