"""Structured JSON logger for the fetch layer.

Provides context-aware logging with automatic JSON formatting.

Usage:
    from bcra_fetch.observability import get_logger, log_context

    logger = get_logger(__name__)

    with log_context(cache_key="series:27", source="bcra"):
        logger.info("Fetching upstream", extra={"attempt": 1})
        # Output: {"timestamp": "...", "cache_key": "series:27", "source": "bcra", "message": "...", "attempt": 1}
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import Any, Iterator

ROOT_LOGGER = "bcra_fetch"

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


@dataclass
class LogContext:
    """Context for structured logging.

    Attributes are automatically included in all log messages
    within this context.
    """

    cache_key: str | None = None
    source: str | None = None
    operation: str | None = None
    correlation_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


# Context variable to store current log context
_log_context: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "log_context",
    default=LogContext(),
)


@contextmanager
def log_context(**fields: Any) -> Iterator[LogContext]:
    """Set log context fields for the enclosed block.

    Fields not given are inherited from the enclosing context.

    Args:
        **fields: Context fields to set (cache_key, source, operation, correlation_id)

    Example:
        with log_context(cache_key="BCRADirect"):
            logger.info("Serving cached data")
    """
    token = _log_context.set(replace(_log_context.get(), **fields))
    try:
        yield _log_context.get()
    finally:
        _log_context.reset(token)


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """JSON formatter with context support."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()

        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(ctx.to_dict())
        entry.update(_extras(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()
        color = self.COLORS.get(record.levelname, "")

        prefix_parts = []
        if ctx.operation:
            prefix_parts.append(f"[{ctx.operation}]")
        if ctx.cache_key:
            prefix_parts.append(f"[{ctx.cache_key}]")

        prefix = " ".join(prefix_parts)
        if prefix:
            prefix += " "

        timestamp = datetime.now().strftime("%H:%M:%S")
        level = record.levelname[:4]
        message = record.getMessage()

        extras = [f"{key}={value}" for key, value in _extras(record).items()]
        extra_str = " | " + ", ".join(extras) if extras else ""

        formatted = f"{timestamp} {color}{level}{self.RESET} {prefix}{message}{extra_str}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


# Track if logging has been set up
_logging_configured = False


def setup_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
    quiet: bool = False,
    force: bool = False,
) -> None:
    """Set up logging for the fetch layer.

    Args:
        level: Logging level (default: INFO)
        json_format: Use JSON format (default: False, use pretty format)
        quiet: Suppress all output except errors (default: False)
        force: Reconfigure even if already set up
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.ERROR if quiet else level)
    handler.setFormatter(StructuredFormatter() if json_format else PrettyFormatter())
    root.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Configured logger instance
    """
    setup_logging()

    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
