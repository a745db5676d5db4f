"""Tests for bcra_fetch/observability."""

import json
import logging

from bcra_fetch.observability import FetchMetrics, get_logger, log_context
from bcra_fetch.observability.logger import PrettyFormatter, StructuredFormatter


def make_record(msg: str = "Fetching from upstream", **extra) -> logging.LogRecord:
    record = logging.LogRecord("bcra_fetch.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    """Context fields are injected into formatted records."""

    def test_structured_formatter_includes_context(self):
        with log_context(cache_key="series:27", operation="resolve"):
            line = StructuredFormatter().format(make_record(attempt=2))

        entry = json.loads(line)
        assert entry["cache_key"] == "series:27"
        assert entry["operation"] == "resolve"
        assert entry["attempt"] == 2
        assert entry["level"] == "info"

    def test_context_is_restored(self):
        with log_context(cache_key="outer"):
            with log_context(cache_key="inner", source="bcra"):
                pass
            line = StructuredFormatter().format(make_record())

        entry = json.loads(line)
        assert entry["cache_key"] == "outer"
        assert "source" not in entry

    def test_pretty_formatter_prefix(self):
        with log_context(cache_key="BCRADirect"):
            line = PrettyFormatter().format(make_record(status=503))

        assert "[BCRADirect]" in line
        assert "status=503" in line

    def test_get_logger_namespace(self):
        assert get_logger("pipeline").name == "bcra_fetch.pipeline"
        assert get_logger("bcra_fetch.cache").name == "bcra_fetch.cache"


class TestFetchMetrics:
    """In-process counters."""

    def test_hit_rate(self):
        metrics = FetchMetrics()
        metrics.record_cache_hit()
        metrics.record_cache_hit()
        metrics.record_cache_hit()
        metrics.record_cache_miss()

        assert metrics.total_requests == 4
        assert metrics.hit_rate == 75.0

    def test_failures_by_type(self):
        metrics = FetchMetrics()
        metrics.record_failure("NetworkError")
        metrics.record_failure("NetworkError")
        metrics.record_failure("UpstreamAuthError")

        assert metrics.total_failures == 3
        summary = metrics.to_summary()
        assert "NetworkError: 2" in summary
        assert metrics.to_dict()["failures_by_type"] == {
            "NetworkError": 2,
            "UpstreamAuthError": 1,
        }

    def test_empty_hit_rate(self):
        assert FetchMetrics().hit_rate == 0.0
