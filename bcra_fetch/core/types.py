"""Shared types for the fetch layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

KeyPart = str | int | None


@dataclass(frozen=True)
class CacheKey:
    """Structured cache key.

    Equality and hashing cover the namespace and every parameter, so two
    query shapes never collide even when their string forms look alike.

    Attributes:
        namespace: Query family (e.g. "monetarias", "series", "deudas")
        params: Ordered query parameters
    """

    namespace: str
    params: tuple[KeyPart, ...] = ()

    def __str__(self) -> str:
        if not self.params:
            return self.namespace
        parts = ["" if p is None else str(p) for p in self.params]
        return f"{self.namespace}:{':'.join(parts)}"


class KeyState(str, Enum):
    """Lifecycle state of a single cache key."""

    EMPTY = "empty"  # Never fetched
    FRESH = "fresh"  # Data served from memory
    STALE = "stale"  # Next read goes upstream
    FAILED = "failed"  # Error cached, within error TTL


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Last known outcome for a key.

    An entry holds an error or a payload, never both. Without an error it is
    a data entry, even when the payload itself is None. Entries are replaced
    as a whole record on every fetch attempt, never merged.
    """

    timestamp: datetime
    data: T | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.data is not None:
            raise ValueError("CacheEntry holds either data or an error, not both")

    @property
    def is_error(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class CacheInfo:
    """Inspection view of a key, used for HTTP cache headers and diagnostics."""

    key: str
    state: KeyState
    cached_at: datetime | None = None
    age_seconds: float | None = None
    max_age_seconds: int = 0
    error_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "state": self.state.value,
            "cached_at": self.cached_at.isoformat() if self.cached_at else None,
            "age_seconds": round(self.age_seconds, 1) if self.age_seconds is not None else None,
            "max_age_seconds": self.max_age_seconds,
            "error_type": self.error_type,
        }


@dataclass
class RefreshReport:
    """Result of a cache warm run.

    Tracks success, record count and timing for the operator.
    """

    key: str
    started_at: datetime
    ended_at: datetime | None = None
    success: bool = False
    records: int = 0
    persisted: bool = False
    errors: list[str] = field(default_factory=list)
    error_kind: str | None = None

    @property
    def duration_seconds(self) -> float:
        """Total duration in seconds."""
        if self.ended_at is None:
            return 0.0
        return (self.ended_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "key": self.key,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "success": self.success,
            "records": self.records,
            "persisted": self.persisted,
            "duration_seconds": round(self.duration_seconds, 3),
            "errors": self.errors,
            "error_kind": self.error_kind,
        }
