"""Core infrastructure for the fetch layer."""

from .errors import (
    CircuitOpenError,
    ConfigError,
    DataNotFoundError,
    ErrorKind,
    FetchError,
    NetworkError,
    UpstreamAuthError,
    UpstreamParseError,
    UpstreamTimeoutError,
    classify_exception,
)
from .types import CacheEntry, CacheInfo, CacheKey, KeyState, RefreshReport

__all__ = [
    # Errors
    "ErrorKind",
    "FetchError",
    "ConfigError",
    "NetworkError",
    "UpstreamTimeoutError",
    "UpstreamAuthError",
    "UpstreamParseError",
    "DataNotFoundError",
    "CircuitOpenError",
    "classify_exception",
    # Types
    "CacheKey",
    "CacheEntry",
    "CacheInfo",
    "KeyState",
    "RefreshReport",
]
