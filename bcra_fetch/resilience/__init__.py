"""Resilience components for upstream calls.

Provides fault tolerance patterns for a flaky, rate-limited upstream:
- CircuitBreaker: Fails fast during sustained outages
- RetryExecutor: Bounded retries with linear backoff
- RateLimiter: Fixed window quota with FIFO queueing
"""

from .circuit_breaker import CircuitBreaker, CircuitState
from .rate_limiter import RateLimiter
from .retry import RetryExecutor

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "RateLimiter",
    "RetryExecutor",
]
