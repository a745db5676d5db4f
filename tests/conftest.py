"""Pytest configuration and shared fixtures."""

import pytest

from bcra_fetch.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; isolate environment overrides."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
