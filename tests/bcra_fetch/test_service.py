"""Tests for bcra_fetch/pipeline/service.py.

Upstream client is mocked; validation must fail fast before the
orchestrator is involved.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from bcra_fetch.config.constants import MAX_SERIES_OFFSET
from bcra_fetch.core.errors import CircuitOpenError, ConfigError, NetworkError
from bcra_fetch.core.types import CacheKey, KeyState
from bcra_fetch.pipeline import PRIMARY_KEY, BCRAService
from bcra_fetch.sources import BCRAClient
from bcra_fetch.sources.models import DebtResponse

from .fixtures.bcra_responses import BCRA_DEBTS_RESPONSE, BCRA_SERIES_RESPONSE


@pytest.fixture
def client(snapshot) -> MagicMock:
    client = MagicMock(spec=BCRAClient)
    client.get_monetary_snapshot = AsyncMock(return_value=snapshot)
    client.get_variable_series = AsyncMock(return_value=snapshot)
    client.get_debts = AsyncMock(return_value=DebtResponse.model_validate(BCRA_DEBTS_RESPONSE))
    client.get_debt_history = AsyncMock()
    client.get_rejected_checks = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def service(client, make_orchestrator) -> BCRAService:
    return BCRAService(client=client, orchestrator=make_orchestrator())


class TestFetchPrimary:
    """Primary snapshot resolution."""

    @pytest.mark.asyncio
    async def test_fetch_primary_cached(self, service, client, snapshot):
        assert await service.fetch_primary() == snapshot
        assert await service.fetch_primary() == snapshot

        client.get_monetary_snapshot.assert_awaited_once()
        assert service.primary_cache_info().state == KeyState.FRESH

    def test_primary_key(self):
        assert str(PRIMARY_KEY) == "BCRADirect"


class TestFetchSeries:
    """Series parameters are validated and folded into the cache key."""

    @pytest.mark.asyncio
    async def test_passes_parameters(self, service, client):
        await service.fetch_series(27, from_date="2025-01-01", to_date="2025-02-28", limit=100)

        client.get_variable_series.assert_awaited_once_with(
            27, desde="2025-01-01", hasta="2025-02-28", offset=0, limit=100
        )
        key = CacheKey("series", (27, "2025-01-01", "2025-02-28", 0, 100))
        assert service.orchestrator.cache_info(key).state == KeyState.FRESH

    @pytest.mark.asyncio
    async def test_distinct_parameters_are_distinct_keys(self, service, client):
        await service.fetch_series(27)
        await service.fetch_series(27, limit=500)
        await service.fetch_series(27)

        assert client.get_variable_series.await_count == 2

    @pytest.mark.asyncio
    async def test_digit_string_id_accepted(self, service, client):
        await service.fetch_series("27")
        assert client.get_variable_series.await_args.args[0] == 27

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"variable_id": 0}, "variable_id"),
            ({"variable_id": -4}, "variable_id"),
            ({"variable_id": "abc"}, "variable_id"),
            ({"variable_id": True}, "variable_id"),
            ({"variable_id": "\u00b2"}, "variable_id"),
            ({"variable_id": "\u0663"}, "variable_id"),
            ({"variable_id": 27, "from_date": "2025/01/01"}, "from_date"),
            ({"variable_id": 27, "from_date": "2025-02-30"}, "from_date"),
            ({"variable_id": 27, "to_date": "yesterday"}, "to_date"),
            ({"variable_id": 27, "offset": -1}, "offset"),
            ({"variable_id": 27, "offset": MAX_SERIES_OFFSET + 1}, "offset"),
            ({"variable_id": 27, "from_date": "\u0662025-01-01"}, "from_date"),
            ({"variable_id": 27, "limit": 0}, "limit"),
            ({"variable_id": 27, "limit": 3001}, "limit"),
            (
                {"variable_id": 27, "from_date": "2025-03-01", "to_date": "2025-01-01"},
                "from_date",
            ),
        ],
    )
    async def test_invalid_parameters_fail_fast(self, service, client, kwargs, field):
        with pytest.raises(ConfigError) as exc_info:
            await service.fetch_series(**kwargs)

        assert exc_info.value.field == field
        client.get_variable_series.assert_not_awaited()
        assert service.orchestrator.metrics.total_requests == 0
        assert service.orchestrator.rate_limiter.available == 60

    @pytest.mark.asyncio
    async def test_max_limit_accepted(self, service, client):
        await service.fetch_series(27, limit=3000)
        assert client.get_variable_series.await_args.kwargs["limit"] == 3000

    @pytest.mark.asyncio
    async def test_max_offset_accepted(self, service, client):
        await service.fetch_series(27, offset=MAX_SERIES_OFFSET)
        assert client.get_variable_series.await_args.kwargs["offset"] == MAX_SERIES_OFFSET


class TestDebtorRegistry:
    """Central de Deudores lookups."""

    @pytest.mark.asyncio
    async def test_fetch_debts(self, service, client):
        result = await service.fetch_debts("20123456789")

        assert result.results.denominacion == "PEREZ JUAN"
        client.get_debts.assert_awaited_once_with("20123456789")

    @pytest.mark.asyncio
    async def test_integer_identification_accepted(self, service, client):
        await service.fetch_debts(20123456789)
        client.get_debts.assert_awaited_once_with("20123456789")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "identification",
        ["123", "2012345678X", "201234567890", "", "2012345678\u0669"],
    )
    async def test_invalid_identification(self, service, client, identification):
        with pytest.raises(ConfigError):
            await service.fetch_debt_history(identification)
        with pytest.raises(ConfigError):
            await service.fetch_rejected_checks(identification)

        client.get_debt_history.assert_not_awaited()
        client.get_rejected_checks.assert_not_awaited()


class TestRefreshPrimary:
    """Cache warm job report."""

    @pytest.mark.asyncio
    async def test_success_report(self, service, snapshot):
        report = await service.refresh_primary()

        assert report.success is True
        assert report.records == len(snapshot.results)
        assert report.persisted is False  # no Redis configured
        assert report.ended_at is not None
        assert report.key == "BCRADirect"

    @pytest.mark.asyncio
    async def test_failure_report(self, service, client):
        client.get_monetary_snapshot.side_effect = NetworkError("down")

        report = await service.refresh_primary()

        assert report.success is False
        assert report.error_kind == "network"
        assert report.errors == ["down"]

    @pytest.mark.asyncio
    async def test_circuit_open_report(self, service):
        service.orchestrator.circuit_breaker.check_open = MagicMock(
            side_effect=CircuitOpenError("open", retry_after=30)
        )

        report = await service.refresh_primary()

        assert report.success is False
        assert report.error_kind == "circuit_open"


class TestLifecycle:
    """Resource cleanup."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, client, make_orchestrator):
        async with BCRAService(client=client, orchestrator=make_orchestrator()):
            pass

        client.close.assert_awaited_once()

    def test_default_construction(self):
        service = BCRAService()
        assert service.client.base_url == "https://api.bcra.gob.ar"
        assert service.orchestrator.config is service.config
