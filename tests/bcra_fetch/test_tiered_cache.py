"""Tests for bcra_fetch/cache/tiered.py.

Freshness policy: TTL ceiling, calendar rollover and checkpoint hours.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bcra_fetch.cache import TieredCache
from bcra_fetch.config.constants import CRON_CACHE_MAX_TTL
from bcra_fetch.core.errors import NetworkError
from bcra_fetch.core.types import CacheEntry, CacheKey, KeyState

from .conftest import BUENOS_AIRES, FakeWallClock

KEY = CacheKey("BCRADirect")


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 3, day, hour, minute, tzinfo=BUENOS_AIRES)


@pytest.fixture
def cache(wall_clock) -> TieredCache:
    return TieredCache(refresh_hours=(1, 7, 13, 19), clock=wall_clock)


class TestShouldRefresh:
    """Staleness rules."""

    def test_checkpoint_not_crossed_is_fresh(self, cache, wall_clock):
        wall_clock.set(at(14, 0, 30))
        entry = cache.put(KEY, {"v": 1})

        wall_clock.set(at(14, 0, 50))
        assert cache.should_refresh(entry) is False

    def test_checkpoint_crossed_is_stale(self, cache, wall_clock):
        wall_clock.set(at(14, 0, 30))
        entry = cache.put(KEY, {"v": 1})

        wall_clock.set(at(14, 1, 5))
        assert cache.should_refresh(entry) is True

    def test_cached_after_checkpoint_stays_fresh(self, cache, wall_clock):
        wall_clock.set(at(14, 7, 10))
        entry = cache.put(KEY, {"v": 1})

        wall_clock.set(at(14, 12, 59))
        assert cache.should_refresh(entry) is False

    def test_calendar_rollover_is_stale(self, cache, wall_clock):
        wall_clock.set(at(13, 23, 55))
        entry = cache.put(KEY, {"v": 1})

        wall_clock.set(at(14, 0, 1))
        assert cache.should_refresh(entry) is True

    def test_ttl_ceiling(self, wall_clock):
        cache = TieredCache(max_ttl=CRON_CACHE_MAX_TTL, refresh_hours=(), clock=wall_clock)
        wall_clock.set(at(14, 8, 0))
        entry = cache.put(KEY, {"v": 1})

        wall_clock.set(at(14, 8, 59))
        assert cache.should_refresh(entry) is False
        wall_clock.set(at(14, 9, 0))
        assert cache.should_refresh(entry) is True

    def test_uses_checkpoint_time_zone(self, cache, wall_clock):
        # 03:30 UTC is 00:30 in Buenos Aires (UTC-3)
        wall_clock.set(datetime(2025, 3, 14, 3, 30, tzinfo=timezone.utc))
        entry = cache.put(KEY, {"v": 1})

        wall_clock.set(datetime(2025, 3, 14, 3, 50, tzinfo=timezone.utc))
        assert cache.should_refresh(entry) is False
        wall_clock.set(datetime(2025, 3, 14, 4, 5, tzinfo=timezone.utc))
        assert cache.should_refresh(entry) is True

    def test_naive_clock_is_interpreted_in_checkpoint_zone(self):
        clock = FakeWallClock(datetime(2025, 3, 14, 0, 30))
        cache = TieredCache(clock=clock)
        entry = cache.put(KEY, {"v": 1})

        assert entry.timestamp.tzinfo is not None
        clock.set(datetime(2025, 3, 14, 1, 5))
        assert cache.should_refresh(entry) is True


class TestGet:
    """Lookup semantics for data and error entries."""

    def test_absent_key(self, cache):
        assert cache.get(KEY) is None

    def test_returns_data_entry(self, cache):
        cache.put(KEY, {"v": 1})
        entry = cache.get(KEY)
        assert entry is not None
        assert entry.data == {"v": 1}

    def test_cached_error_rethrown_within_error_ttl(self, cache, wall_clock):
        error = NetworkError("down")
        cache.put_error(KEY, error)

        wall_clock.set(wall_clock.now + timedelta(minutes=4))
        with pytest.raises(NetworkError) as exc_info:
            cache.get(KEY)
        assert exc_info.value is error

    def test_cached_error_expires(self, cache, wall_clock):
        cache.put_error(KEY, NetworkError("down"))

        wall_clock.set(wall_clock.now + timedelta(minutes=5))
        assert cache.get(KEY) is None

    def test_success_replaces_error(self, cache):
        cache.put_error(KEY, NetworkError("down"))
        cache.put(KEY, {"v": 2})

        assert cache.get(KEY).data == {"v": 2}
        assert len(cache) == 1

    def test_keys_with_distinct_params_do_not_collide(self, cache):
        cache.put(CacheKey("series", (27, None, None, 0, 1000)), "a")
        cache.put(CacheKey("series", (27, None, None, 0, 100)), "b")

        assert cache.get(CacheKey("series", (27, None, None, 0, 1000))).data == "a"
        assert len(cache) == 2


class TestMaxAge:
    """Seconds until the entry must be refreshed."""

    def test_next_checkpoint_bounds_max_age(self, cache, wall_clock):
        wall_clock.set(at(14, 10, 0))
        entry = cache.put(KEY, {"v": 1})

        assert cache.max_age(entry) == 3 * 3600

    def test_midnight_bounds_max_age(self, cache, wall_clock):
        wall_clock.set(at(14, 20, 0))
        entry = cache.put(KEY, {"v": 1})

        assert cache.max_age(entry) == 4 * 3600

    def test_stale_entry_has_zero_max_age(self, cache, wall_clock):
        wall_clock.set(at(14, 0, 30))
        entry = cache.put(KEY, {"v": 1})
        wall_clock.set(at(14, 2, 0))

        assert cache.max_age(entry) == 0


class TestInfo:
    """Key lifecycle state."""

    def test_empty(self, cache):
        assert cache.info(KEY).state == KeyState.EMPTY

    def test_fresh_then_stale(self, cache, wall_clock):
        wall_clock.set(at(14, 0, 30))
        cache.put(KEY, {"v": 1})
        assert cache.info(KEY).state == KeyState.FRESH

        wall_clock.set(at(14, 1, 5))
        info = cache.info(KEY)
        assert info.state == KeyState.STALE
        assert info.max_age_seconds == 0

    def test_failed_then_stale(self, cache, wall_clock):
        cache.put_error(KEY, NetworkError("down"))
        info = cache.info(KEY)
        assert info.state == KeyState.FAILED
        assert info.error_type == "NetworkError"
        assert info.max_age_seconds == 300

        wall_clock.set(wall_clock.now + timedelta(minutes=6))
        assert cache.info(KEY).state == KeyState.STALE

    def test_to_dict(self, cache):
        cache.put(KEY, {"v": 1})
        d = cache.info(KEY).to_dict()
        assert d["key"] == "BCRADirect"
        assert d["state"] == "fresh"


class TestCacheEntry:
    """Entries hold data or an error, never both."""

    def test_data_and_error_are_exclusive(self, wall_clock):
        with pytest.raises(ValueError):
            CacheEntry(timestamp=wall_clock.now, data=1, error=NetworkError("x"))

    def test_none_is_a_data_payload(self, cache):
        cache.put(KEY, None)

        entry = cache.get(KEY)

        assert entry is not None
        assert entry.is_error is False
        assert entry.data is None
