"""Circuit Breaker pattern for cascade failure prevention.

State transitions:
CLOSED (normal) → [failure_threshold consecutive failures] → OPEN (blocked)
OPEN → [reset_timeout elapsed, next call] → probe allowed, counters reset
probe success → CLOSED, probe failure → failure count 1 (CLOSED)

There is no background timer: the half-open transition is evaluated
lazily by `check_open()` on the next call.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable

from bcra_fetch.core.errors import CircuitOpenError
from bcra_fetch.observability.logger import get_logger

logger = get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, rejecting calls
    HALF_OPEN = "half_open"  # Cool-down elapsed, next call probes


@dataclass
class CircuitBreaker:
    """Circuit breaker for preventing cascade failures.

    Usage:
        breaker = CircuitBreaker(failure_threshold=5, reset_timeout=60)

        breaker.check_open()  # raises CircuitOpenError while open
        try:
            result = await risky_operation()
        except Exception:
            breaker.record_failure()
            raise
        breaker.record_success()
    """

    # Configuration
    failure_threshold: int = 5
    reset_timeout: float = 60.0  # seconds
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    # State
    _failure_count: int = field(default=0, init=False)
    _last_failure_at: float = field(default=0.0, init=False)
    _is_open: bool = field(default=False, init=False)

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        if not self._is_open:
            return CircuitState.CLOSED
        if self.clock() - self._last_failure_at >= self.reset_timeout:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    @property
    def is_open(self) -> bool:
        """Check if circuit is rejecting calls right now."""
        return self.state == CircuitState.OPEN

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_failure_at(self) -> float:
        return self._last_failure_at

    def check_open(self) -> None:
        """Allow or reject a call.

        Raises:
            CircuitOpenError: If the circuit is open and the reset timeout
                has not elapsed since the last failure
        """
        if not self._is_open:
            return

        elapsed = self.clock() - self._last_failure_at
        if elapsed >= self.reset_timeout:
            logger.info(
                "Circuit breaker cool-down elapsed, allowing probe call",
                extra={"reset_timeout": self.reset_timeout},
            )
            self._is_open = False
            self._failure_count = 0
            return

        remaining = self.reset_timeout - elapsed
        raise CircuitOpenError(
            f"Circuit is OPEN - too many recent failures. Retry in {remaining:.0f}s",
            reset_at=datetime.now() + timedelta(seconds=remaining),
            retry_after=remaining,
            source="circuit_breaker",
        )

    def record_success(self) -> None:
        """Record a successful logical call."""
        self._failure_count = 0

    def record_failure(self) -> None:
        """Record a failed logical call."""
        self._failure_count += 1
        self._last_failure_at = self.clock()

        if not self._is_open and self._failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker opening",
                extra={"failure_count": self._failure_count},
            )
            self._is_open = True

    def reset(self) -> None:
        """Reset circuit breaker to initial state."""
        self._is_open = False
        self._failure_count = 0
        self._last_failure_at = 0.0
        logger.info("Circuit breaker reset to CLOSED state")
