"""In-process cache tier and its freshness policy.

The upstream publishes new values only a few times a day, so entries are
refreshed on a fixed daily checkpoint schedule rather than a short TTL.
An entry is stale when any of the following holds:

1. it is older than `max_ttl` (absolute ceiling);
2. it was cached on a different calendar day than today;
3. a checkpoint hour h exists with hour(cached) < h <= hour(now).

Errors are cached too, under a much shorter `error_ttl`, so a failing key
is not hammered while it still recovers quickly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Callable, Generic, Iterable, TypeVar
from zoneinfo import ZoneInfo

from bcra_fetch.config.constants import (
    CACHE_MAX_TTL,
    ERROR_TTL,
    REFRESH_HOURS,
    REFRESH_TIMEZONE,
)
from bcra_fetch.core.types import CacheEntry, CacheInfo, CacheKey, KeyState
from bcra_fetch.observability.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _system_clock(tz: tzinfo) -> Callable[[], datetime]:
    return lambda: datetime.now(tz)


@dataclass
class TieredCache(Generic[T]):
    """In-process map of key to last known outcome.

    Usage:
        cache = TieredCache(max_ttl=43200, refresh_hours=(1, 7, 13, 19))

        entry = cache.get(key)  # raises the cached error within error_ttl
        if entry is None or cache.should_refresh(entry):
            data = await fetch()
            cache.put(key, data)
    """

    # Configuration
    max_ttl: float = CACHE_MAX_TTL  # seconds
    error_ttl: float = ERROR_TTL  # seconds
    refresh_hours: Iterable[int] = REFRESH_HOURS
    timezone: tzinfo | str = REFRESH_TIMEZONE
    clock: Callable[[], datetime] | None = field(default=None, repr=False)

    # State
    _entries: dict[CacheKey, CacheEntry[T]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.timezone, str):
            self.timezone = ZoneInfo(self.timezone)
        self.refresh_hours = tuple(sorted(set(self.refresh_hours)))
        if self.clock is None:
            self.clock = _system_clock(self.timezone)

    def now(self) -> datetime:
        """Current time in the checkpoint time zone."""
        current = self.clock()
        if current.tzinfo is None:
            return current.replace(tzinfo=self.timezone)
        return current.astimezone(self.timezone)

    def get(self, key: CacheKey) -> CacheEntry[T] | None:
        """Look up the last outcome for a key.

        Returns:
            The entry holding data (fresh or not), or None when absent or
            when a cached error has outlived `error_ttl`

        Raises:
            The cached error, while it is younger than `error_ttl`
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_error:
            if self._age(entry) < self.error_ttl:
                logger.debug("Using cached error", extra={"cache_key": str(key)})
                # Shared instance: drop frames left by earlier hits
                raise entry.error.with_traceback(None)
            return None

        return entry

    def put(self, key: CacheKey, data: T) -> CacheEntry[T]:
        """Store a successful result, replacing any previous entry."""
        entry: CacheEntry[T] = CacheEntry(timestamp=self.now(), data=data)
        self._entries[key] = entry
        return entry

    def put_error(self, key: CacheKey, error: BaseException) -> CacheEntry[T]:
        """Store a failure, replacing any previous entry."""
        entry: CacheEntry[T] = CacheEntry(timestamp=self.now(), error=error)
        self._entries[key] = entry
        return entry

    def should_refresh(self, entry: CacheEntry[Any]) -> bool:
        """Decide whether a data entry is stale.

        Args:
            entry: Cached entry to evaluate

        Returns:
            True if the entry must be refetched
        """
        now = self.now()
        cached_at = entry.timestamp.astimezone(self.timezone)

        if (now - cached_at).total_seconds() >= self.max_ttl:
            return True

        if cached_at.date() != now.date():
            return True

        return any(cached_at.hour < hour <= now.hour for hour in self.refresh_hours)

    def max_age(self, entry: CacheEntry[Any]) -> int:
        """Seconds until the entry must be refreshed.

        Takes the earliest of the TTL ceiling, the next midnight and the
        next checkpoint hour.
        """
        if self.should_refresh(entry):
            return 0

        now = self.now()
        cached_at = entry.timestamp.astimezone(self.timezone)
        deadlines = [(self.max_ttl - (now - cached_at).total_seconds())]

        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        seconds_today = (now - midnight).total_seconds()
        deadlines.append(24 * 3600 - seconds_today)

        for hour in self.refresh_hours:
            if hour > now.hour:
                deadlines.append(hour * 3600 - seconds_today)
                break

        return max(0, math.floor(min(deadlines)))

    def info(self, key: CacheKey) -> CacheInfo:
        """Describe the lifecycle state of a key."""
        entry = self._entries.get(key)
        if entry is None:
            return CacheInfo(key=str(key), state=KeyState.EMPTY)

        age = self._age(entry)
        if entry.is_error:
            failed = age < self.error_ttl
            return CacheInfo(
                key=str(key),
                state=KeyState.FAILED if failed else KeyState.STALE,
                cached_at=entry.timestamp,
                age_seconds=age,
                max_age_seconds=max(0, math.floor(self.error_ttl - age)) if failed else 0,
                error_type=type(entry.error).__name__,
            )

        stale = self.should_refresh(entry)
        return CacheInfo(
            key=str(key),
            state=KeyState.STALE if stale else KeyState.FRESH,
            cached_at=entry.timestamp,
            age_seconds=age,
            max_age_seconds=self.max_age(entry),
        )

    def _age(self, entry: CacheEntry[Any]) -> float:
        return (self.now() - entry.timestamp).total_seconds()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
