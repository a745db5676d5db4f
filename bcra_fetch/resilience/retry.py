"""Linear Backoff Retry Executor.

Provides bounded retry with linearly increasing delay:
- Configurable max retries
- Delay of base_delay * (attempt + 1) between attempts
- Selective retry based on exception type

The executor knows nothing about the circuit breaker; callers record one
breaker event per whole retry sequence.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from bcra_fetch.core.errors import FetchError
from bcra_fetch.observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RetryExecutor:
    """Retry executor with linear backoff.

    Usage:
        executor = RetryExecutor(max_retries=3, base_delay=1.0)

        result = await executor.execute(risky_operation)
    """

    # Configuration
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, repr=False)
    on_retry: Callable[[int, BaseException], None] | None = field(default=None, repr=False)

    async def execute(
        self,
        func: Callable[..., Any],
        *args: Any,
        max_retries: int | None = None,
        base_delay: float | None = None,
        **kwargs: Any,
    ) -> Any:
        """Execute function with retries.

        Args:
            func: Async or sync function to execute
            *args: Positional arguments
            max_retries: Override for this call
            base_delay: Override for this call
            **kwargs: Keyword arguments

        Returns:
            Function result

        Raises:
            Last exception if all retries exhausted, or the first
            non-retryable exception
        """
        retries = self.max_retries if max_retries is None else max_retries
        delay_unit = self.base_delay if base_delay is None else base_delay

        for attempt in range(retries + 1):
            try:
                result = func(*args, **kwargs)
                if asyncio.iscoroutine(result):
                    result = await result

                return result

            except Exception as e:
                if not self._is_retryable(e):
                    logger.debug(f"Non-retryable error: {type(e).__name__}")
                    raise

                if attempt >= retries:
                    logger.warning(
                        f"Max retries ({retries}) exhausted",
                        extra={"error": str(e), "error_type": type(e).__name__},
                    )
                    raise

                delay = self._calculate_delay(attempt, delay_unit)

                logger.info(
                    f"Retry {attempt + 1}/{retries} after {delay:.1f}s",
                    extra={"error_type": type(e).__name__},
                )
                if self.on_retry is not None:
                    self.on_retry(attempt + 1, e)

                await self.sleep(delay)

        # range(retries + 1) always returns or raises above
        raise RuntimeError("Retry logic error")

    def _is_retryable(self, error: Exception) -> bool:
        """Check if error is retryable.

        FetchError subclasses decide for themselves; anything else raised
        by an upstream operation is treated as transient.
        """
        if isinstance(error, FetchError):
            return error.is_retryable
        return True

    @staticmethod
    def _calculate_delay(attempt: int, base_delay: float) -> float:
        """Linear backoff: base * (attempt + 1), attempt is 0-based."""
        return max(0.0, base_delay * (attempt + 1))
