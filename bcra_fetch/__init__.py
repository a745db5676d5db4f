"""Resilient fetch and cache layer for the BCRA statistics API.

Usage:
    from bcra_fetch import BCRAService

    async with BCRAService.from_settings() as service:
        snapshot = await service.fetch_primary()
        series = await service.fetch_series(27, from_date="2025-01-01")
"""

from .core.errors import (
    CircuitOpenError,
    ConfigError,
    DataNotFoundError,
    ErrorKind,
    FetchError,
    NetworkError,
    UpstreamAuthError,
    UpstreamParseError,
    UpstreamTimeoutError,
)
from .pipeline import BCRAService, FetchOrchestrator, ResilienceConfig

__version__ = "0.1.0"

__all__ = [
    "BCRAService",
    "FetchOrchestrator",
    "ResilienceConfig",
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
]
