"""Fetch orchestrator.

Composes the resilience components around a single upstream operation.

Resolve flow for one key:
1. Look up the in-process cache
2. Fresh data -> return it (no network call)
3. Cached error within ERROR_TTL -> rethrow it (no network call)
4. Otherwise: circuit breaker -> rate limiter -> retry executor
5. Success -> cache, reset breaker, persist durable snapshot
6. Terminal failure -> cache error, count breaker failure, try the
   durable fallback before giving up

Concurrent callers for the same stale key are not deduplicated: each
runs its own pass through steps 4-6.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from bcra_fetch.cache import FallbackStore, TieredCache
from bcra_fetch.core.errors import (
    CircuitOpenError,
    ConfigError,
    FetchError,
    classify_exception,
)
from bcra_fetch.core.types import CacheInfo, CacheKey
from bcra_fetch.observability.logger import get_logger, log_context
from bcra_fetch.observability.metrics import FetchMetrics
from bcra_fetch.resilience import CircuitBreaker, RateLimiter, RetryExecutor

from .config import ResilienceConfig

logger = get_logger(__name__)

Operation = Callable[[], Awaitable[Any]]


@dataclass
class FetchOrchestrator:
    """Cache-aware, resilient resolver for upstream payloads.

    All mutable state (cache map, breaker and limiter state, counters)
    lives on the instance, so independent orchestrators never share it.

    Usage:
        orchestrator = FetchOrchestrator(config=ResilienceConfig.from_settings())

        data = await orchestrator.resolve(
            CacheKey("BCRADirect"),
            client.get_monetary_snapshot,
            model=BCRAResponse,
        )
    """

    config: ResilienceConfig = field(default_factory=ResilienceConfig)
    metrics: FetchMetrics = field(default_factory=FetchMetrics)

    # Components (built from config unless injected)
    circuit_breaker: CircuitBreaker | None = None
    rate_limiter: RateLimiter | None = None
    retry: RetryExecutor | None = None
    cache: TieredCache[Any] | None = None
    fallback: FallbackStore | None = None

    def __post_init__(self) -> None:
        if self.circuit_breaker is None:
            self.circuit_breaker = CircuitBreaker(
                failure_threshold=self.config.circuit_failure_threshold,
                reset_timeout=self.config.circuit_reset_timeout,
            )
        if self.rate_limiter is None:
            self.rate_limiter = RateLimiter(
                max_requests=self.config.rate_limit_max_requests,
                window=self.config.rate_limit_window,
            )
        if self.retry is None:
            self.retry = RetryExecutor(
                max_retries=self.config.max_retries,
                base_delay=self.config.retry_delay,
            )
        if self.retry.on_retry is None:
            self.retry.on_retry = self._on_retry
        if self.cache is None:
            self.cache = TieredCache(
                max_ttl=self.config.cache_max_ttl,
                error_ttl=self.config.error_ttl,
                refresh_hours=self.config.refresh_hours,
                timezone=self.config.refresh_timezone,
            )
        if self.fallback is None:
            self.fallback = FallbackStore(
                redis_url=self.config.redis_url,
                ttl_seconds=self.config.fallback_ttl,
                key_prefix=self.config.fallback_key_prefix,
            )

    async def resolve(
        self,
        key: CacheKey,
        operation: Operation,
        *,
        model: type[BaseModel] | None = None,
    ) -> Any:
        """Resolve a payload for a key.

        Args:
            key: Structured cache key
            operation: Zero-argument coroutine function performing one upstream attempt
            model: Payload model used to rebuild fallback snapshots

        Returns:
            Fresh cached data, live upstream data, or a stale fallback snapshot

        Raises:
            ConfigError: Raised by the operation, surfaced immediately
            FetchError: Terminal failure when no fallback snapshot exists
        """
        with log_context(cache_key=str(key)):
            try:
                entry = self.cache.get(key)
            except FetchError as e:
                self.metrics.record_cached_error_hit()
                return await self._fallback_or_raise(key, e, model)

            if entry is not None and not self.cache.should_refresh(entry):
                self.metrics.record_cache_hit()
                logger.debug("Cache hit")
                return entry.data

            self.metrics.record_cache_miss()

            try:
                data = await self._fetch_live(key, operation)
            except ConfigError:
                raise
            except FetchError as e:
                return await self._fallback_or_raise(key, e, model)

            await self._persist(key, data)
            return data

    async def refresh(self, key: CacheKey, operation: Operation) -> tuple[Any, bool]:
        """Force a live fetch for a key, ignoring freshness and cached errors.

        Used by the cache warm job. The durable fallback is written on
        success but never read: a failure is raised to the caller.

        Returns:
            Tuple of (data, persisted to the durable store)
        """
        with log_context(cache_key=str(key), operation="refresh"):
            data = await self._fetch_live(key, operation)
            persisted = await self._persist(key, data)
            return data, persisted

    def cache_info(self, key: CacheKey) -> CacheInfo:
        """Describe the cache state of a key."""
        return self.cache.info(key)

    async def close(self) -> None:
        """Release the durable store connection."""
        await self.fallback.close()

    async def _fetch_live(self, key: CacheKey, operation: Operation) -> Any:
        """Breaker -> limiter -> retry, with cache and breaker accounting."""
        try:
            self.circuit_breaker.check_open()
        except CircuitOpenError as e:
            self.metrics.record_circuit_rejection()
            logger.warning(
                "Circuit open, skipping upstream call",
                extra={"retry_after": e.retry_after},
            )
            raise

        waited = await self.rate_limiter.acquire()
        if waited > 0:
            self.metrics.record_rate_limit_wait()

        logger.info("Fetching from upstream")

        async def attempt() -> Any:
            self.metrics.record_upstream_call()
            return await operation()

        try:
            data = await self.retry.execute(attempt)
        except ConfigError:
            raise
        except Exception as e:
            error = classify_exception(e, source=str(key))
            if error.cache_key is None:
                error.cache_key = str(key)
            self._record_failure(key, error)
            if error is e:
                raise
            raise error from e

        self.cache.put(key, data)
        self.circuit_breaker.record_success()
        self.metrics.record_upstream_success()
        return data

    def _record_failure(self, key: CacheKey, error: FetchError) -> None:
        if error.is_cacheable:
            self.cache.put_error(key, error)
        if error.counts_toward_breaker:
            self.circuit_breaker.record_failure()
        self.metrics.record_failure(type(error).__name__)
        logger.error(
            f"Upstream fetch failed: {error}",
            extra={"error_type": type(error).__name__, "kind": error.kind.value},
        )

    async def _persist(self, key: CacheKey, data: Any) -> bool:
        # A null snapshot reads back as a fallback miss
        if data is None or not self.fallback.is_configured:
            return False
        return await self.fallback.set(str(key), data)

    async def _fallback_or_raise(
        self,
        key: CacheKey,
        error: FetchError,
        model: type[BaseModel] | None,
    ) -> Any:
        """Serve the durable snapshot for a key, or re-raise the error."""
        payload = await self.fallback.get(str(key))

        if payload is not None and model is not None:
            try:
                payload = model.model_validate(payload)
            except ValidationError as e:
                logger.warning(
                    "Fallback snapshot has unexpected shape, ignoring",
                    extra={"error": str(e)},
                )
                payload = None

        if payload is None:
            self.metrics.record_fallback(hit=False)
            raise error

        self.metrics.record_fallback(hit=True)
        logger.warning(
            "Serving stale fallback data",
            extra={"error_type": type(error).__name__},
        )
        return payload

    def _on_retry(self, attempt: int, error: BaseException) -> None:
        self.metrics.record_retry()
