"""Configuration for the fetch pipeline.

Resilience and freshness knobs for one orchestrator instance. Defaults
follow the BCRA API limits; every knob can be overridden per instance so
several orchestrators (e.g. one per upstream) can coexist.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from bcra_fetch.config.constants import (
    BCRA_BASE_URL,
    CACHE_MAX_TTL,
    CIRCUIT_FAILURE_THRESHOLD,
    CIRCUIT_RESET_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    ERROR_TTL,
    FALLBACK_KEY_PREFIX,
    FALLBACK_TTL,
    MAX_RETRIES,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW,
    REFRESH_HOURS,
    REFRESH_TIMEZONE,
    RETRY_DELAY,
)
from bcra_fetch.config.settings import Settings, get_settings


@dataclass(frozen=True)
class ResilienceConfig:
    """Fetch pipeline configuration.

    Tuned for the BCRA public API:
    - Fixed window rate limiter (60 requests per minute)
    - Circuit Breaker for sustained outages
    - Linear backoff retry
    - Checkpoint-based freshness for the in-process cache
    """

    # === Upstream ===
    base_url: str = BCRA_BASE_URL
    # Hard timeout per HTTP attempt (seconds)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    verify_ssl: bool = True

    # === Rate Limiter (Fixed Window) ===
    rate_limit_max_requests: int = RATE_LIMIT_MAX_REQUESTS
    # Window length (seconds)
    rate_limit_window: float = RATE_LIMIT_WINDOW

    # === Circuit Breaker ===
    # Consecutive failed logical calls before opening
    circuit_failure_threshold: int = CIRCUIT_FAILURE_THRESHOLD
    # Seconds after the last failure before a probe is allowed
    circuit_reset_timeout: float = CIRCUIT_RESET_TIMEOUT

    # === Retry (Linear Backoff) ===
    max_retries: int = MAX_RETRIES
    # Delay unit (seconds), attempt n waits retry_delay * n
    retry_delay: float = RETRY_DELAY

    # === In-process cache ===
    cache_max_ttl: float = CACHE_MAX_TTL
    error_ttl: float = ERROR_TTL
    refresh_hours: tuple[int, ...] = field(default=REFRESH_HOURS)
    refresh_timezone: str = REFRESH_TIMEZONE

    # === Durable fallback ===
    redis_url: str | None = None
    fallback_key_prefix: str = FALLBACK_KEY_PREFIX
    fallback_ttl: int = FALLBACK_TTL

    def __post_init__(self) -> None:
        """Validate configuration."""
        object.__setattr__(self, "refresh_hours", tuple(sorted(set(self.refresh_hours))))
        if self.rate_limit_max_requests <= 0:
            raise ValueError("rate_limit_max_requests must be positive")
        if self.circuit_failure_threshold <= 0:
            raise ValueError("circuit_failure_threshold must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if any(not 0 <= h <= 23 for h in self.refresh_hours):
            raise ValueError(f"refresh_hours out of range: {self.refresh_hours}")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ResilienceConfig:
        """Create config from environment-backed settings."""
        s = settings or get_settings()
        return cls(
            base_url=s.bcra_base_url,
            request_timeout=s.request_timeout,
            verify_ssl=s.verify_ssl,
            rate_limit_max_requests=s.rate_limit_max_requests,
            rate_limit_window=s.rate_limit_window,
            circuit_failure_threshold=s.circuit_failure_threshold,
            circuit_reset_timeout=s.circuit_reset_timeout,
            max_retries=s.max_retries,
            retry_delay=s.retry_delay,
            cache_max_ttl=s.cache_max_ttl,
            error_ttl=s.error_ttl,
            refresh_hours=tuple(s.refresh_hours),
            refresh_timezone=s.refresh_timezone,
            redis_url=s.redis_url,
            fallback_key_prefix=s.fallback_key_prefix,
            fallback_ttl=s.fallback_ttl,
        )
