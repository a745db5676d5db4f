"""Error hierarchy for the fetch layer.

All fetch errors inherit from FetchError and carry an ErrorKind tag, so
callers can branch on the failure class without matching message text.
Use `is_retryable` to decide whether an attempt may be repeated and
`counts_toward_breaker` to decide whether a terminal failure is a
circuit breaker event.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from enum import Enum
from typing import Any

import aiohttp
import pydantic


class ErrorKind(str, Enum):
    """Failure taxonomy exposed to consumers."""

    CONFIG = "config"
    NETWORK = "network"
    UPSTREAM_AUTH = "upstream_auth"
    UPSTREAM_PARSE = "upstream_parse"
    NOT_FOUND = "not_found"
    CIRCUIT_OPEN = "circuit_open"


class FetchError(Exception):
    """Base error for all fetch errors.

    Attributes:
        message: Error description
        cache_key: Related cache key (if applicable)
        source: Upstream endpoint or component name (if applicable)
    """

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str,
        *,
        cache_key: str | None = None,
        source: str | None = None,
    ) -> None:
        self.cache_key = cache_key
        self.source = source
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error can be retried."""
        return False

    @property
    def counts_toward_breaker(self) -> bool:
        """Whether a terminal failure of this kind is a circuit breaker event."""
        return True

    @property
    def is_cacheable(self) -> bool:
        """Whether this error is stored as a short-lived cache entry."""
        return True

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": str(self),
            "cache_key": self.cache_key,
            "source": self.source,
            "is_retryable": self.is_retryable,
        }


class ConfigError(FetchError):
    """Missing credentials or invalid input.

    Never retried and never cached: it surfaces to the caller immediately.
    """

    kind = ErrorKind.CONFIG

    def __init__(
        self,
        message: str = "Invalid configuration",
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    @property
    def counts_toward_breaker(self) -> bool:
        return False

    @property
    def is_cacheable(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        d["value"] = str(self.value) if self.value is not None else None
        return d


class NetworkError(FetchError):
    """Connection failure or transient upstream status (429, 5xx).

    This is retryable - might be a temporary network issue.
    """

    kind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str = "Network error",
        *,
        status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status = status

    @property
    def is_retryable(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["status"] = self.status
        return d


class UpstreamTimeoutError(NetworkError):
    """Request exceeded its hard timeout.

    Flows through the same retry path as any other network failure.
    """

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        timeout_seconds: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["timeout_seconds"] = self.timeout_seconds
        return d


class UpstreamAuthError(FetchError):
    """Upstream rejected the request (401/403, geo or IP blocking).

    Not retried; counts immediately toward the circuit breaker.
    """

    kind = ErrorKind.UPSTREAM_AUTH

    def __init__(
        self,
        message: str = "Upstream unauthorized access",
        *,
        status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["status"] = self.status
        return d


class UpstreamParseError(FetchError):
    """Response body is not the expected shape.

    Retried like a network error.
    """

    kind = ErrorKind.UPSTREAM_PARSE

    def __init__(
        self,
        message: str = "Failed to parse upstream response",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

    @property
    def is_retryable(self) -> bool:
        return True


class DataNotFoundError(FetchError):
    """Upstream has no data for the requested resource (HTTP 404).

    This is NOT retryable - the data simply doesn't exist. It is cached
    but does not trip the breaker, since the upstream itself is healthy.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str = "Data not found",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

    @property
    def counts_toward_breaker(self) -> bool:
        return False


class CircuitOpenError(FetchError):
    """Circuit breaker is open - failing fast.

    This is NOT retryable immediately. Wait until `reset_at` time.
    Synthetic: it is neither cached nor counted as a new failure.
    """

    kind = ErrorKind.CIRCUIT_OPEN

    def __init__(
        self,
        message: str = "Circuit breaker is open",
        *,
        reset_at: datetime | None = None,
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after

    @property
    def counts_toward_breaker(self) -> bool:
        return False

    @property
    def is_cacheable(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["reset_at"] = self.reset_at.isoformat() if self.reset_at else None
        d["retry_after"] = self.retry_after
        return d


def classify_exception(error: BaseException, source: str | None = None) -> FetchError:
    """Classify a library exception into a FetchError.

    Classification is by exception type only.

    Args:
        error: The exception to classify
        source: Upstream endpoint name for context

    Returns:
        Appropriate FetchError subclass
    """
    if isinstance(error, FetchError):
        return error

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return UpstreamTimeoutError(str(error) or "Request timed out", source=source)

    if isinstance(error, aiohttp.ClientResponseError):
        if error.status in (401, 403):
            return UpstreamAuthError(str(error), status=error.status, source=source)
        if error.status == 404:
            return DataNotFoundError(str(error), source=source)
        return NetworkError(str(error), status=error.status, source=source)

    if isinstance(error, (aiohttp.ClientError, ConnectionError, OSError)):
        return NetworkError(str(error) or type(error).__name__, source=source)

    if isinstance(error, (json.JSONDecodeError, pydantic.ValidationError, ValueError)):
        return UpstreamParseError(str(error), source=source)

    return NetworkError(str(error) or type(error).__name__, source=source)
