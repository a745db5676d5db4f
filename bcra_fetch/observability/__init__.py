"""Observability infrastructure for the fetch layer.

Provides structured logging and metrics collection.
"""

from .logger import LogContext, get_logger, log_context, setup_logging
from .metrics import FetchMetrics

__all__ = [
    "LogContext",
    "get_logger",
    "log_context",
    "setup_logging",
    "FetchMetrics",
]
