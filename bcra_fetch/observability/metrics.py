"""Metrics collection for the fetch layer.

Tracks cache efficiency, upstream traffic and failure classes for one
orchestrator instance.

Usage:
    from bcra_fetch.observability import FetchMetrics

    metrics = FetchMetrics()
    metrics.record_cache_hit()
    metrics.record_failure("NetworkError")

    print(metrics.hit_rate)
    print(metrics.to_summary())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class FetchMetrics:
    """In-process counters for a fetch orchestrator."""

    started_at: datetime = field(default_factory=datetime.now)

    # Cache
    cache_hits: int = 0
    cached_error_hits: int = 0
    cache_misses: int = 0

    # Upstream
    upstream_calls: int = 0  # HTTP attempts, retries included
    upstream_successes: int = 0
    retries: int = 0

    # Failures by error type
    failures_by_type: dict[str, int] = field(default_factory=dict)

    # Resilience
    fallback_hits: int = 0
    fallback_misses: int = 0
    circuit_rejections: int = 0
    rate_limit_waits: int = 0

    @property
    def total_requests(self) -> int:
        """Resolve calls that reached a cache decision."""
        return self.cache_hits + self.cached_error_hits + self.cache_misses

    @property
    def hit_rate(self) -> float:
        """Fresh-data cache hit rate as percentage (0-100)."""
        if self.total_requests == 0:
            return 0.0
        return self.cache_hits / self.total_requests * 100

    @property
    def total_failures(self) -> int:
        return sum(self.failures_by_type.values())

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cached_error_hit(self) -> None:
        self.cached_error_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    def record_upstream_call(self) -> None:
        """Record one upstream attempt."""
        self.upstream_calls += 1

    def record_upstream_success(self) -> None:
        self.upstream_successes += 1

    def record_retry(self) -> None:
        self.retries += 1

    def record_failure(self, error_type: str = "unknown") -> None:
        """Record a terminal failure with its error type."""
        self.failures_by_type[error_type] = self.failures_by_type.get(error_type, 0) + 1

    def record_fallback(self, hit: bool) -> None:
        if hit:
            self.fallback_hits += 1
        else:
            self.fallback_misses += 1

    def record_circuit_rejection(self) -> None:
        self.circuit_rejections += 1

    def record_rate_limit_wait(self) -> None:
        self.rate_limit_waits += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "started_at": self.started_at.isoformat(),
            "cache_hits": self.cache_hits,
            "cached_error_hits": self.cached_error_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": round(self.hit_rate, 2),
            "upstream_calls": self.upstream_calls,
            "upstream_successes": self.upstream_successes,
            "retries": self.retries,
            "failures_by_type": dict(self.failures_by_type),
            "fallback_hits": self.fallback_hits,
            "fallback_misses": self.fallback_misses,
            "circuit_rejections": self.circuit_rejections,
            "rate_limit_waits": self.rate_limit_waits,
        }

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Fetch Summary",
            "=" * 40,
            f"Requests: {self.total_requests} (hit rate {self.hit_rate:.1f}%)",
            f"Upstream calls: {self.upstream_calls} attempts, {self.upstream_successes} fetches ok",
            f"Retries: {self.retries}",
        ]

        if self.failures_by_type:
            lines.append("")
            lines.append("Failures by Type:")
            for error_type, count in sorted(
                self.failures_by_type.items(), key=lambda x: -x[1]
            ):
                lines.append(f"  {error_type}: {count}")

        if self.fallback_hits or self.fallback_misses:
            lines.append(f"\nFallback: {self.fallback_hits} served, {self.fallback_misses} empty")

        if self.circuit_rejections > 0:
            lines.append(f"Circuit Rejections: {self.circuit_rejections}")

        if self.rate_limit_waits > 0:
            lines.append(f"Rate Limit Waits: {self.rate_limit_waits}")

        return "\n".join(lines)
