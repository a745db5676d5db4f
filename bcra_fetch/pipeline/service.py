"""BCRA data service.

Public surface for consumers (dashboards, API routes, calculators).
Parameters are validated before they are folded into a cache key; an
invalid request fails fast with ConfigError without touching the cache,
the rate limiter or the circuit breaker.

Consumers only ever see a resolved payload or a FetchError subclass.
"""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Any

from bcra_fetch.config.constants import (
    DEFAULT_SERIES_LIMIT,
    MAX_SERIES_LIMIT,
    MAX_SERIES_OFFSET,
    PRIMARY_CACHE_NAMESPACE,
)
from bcra_fetch.config.settings import Settings
from bcra_fetch.core.errors import ConfigError, FetchError
from bcra_fetch.core.types import CacheInfo, CacheKey, RefreshReport
from bcra_fetch.observability.logger import get_logger, log_context
from bcra_fetch.sources import BCRAClient
from bcra_fetch.sources.models import (
    BCRAResponse,
    DebtHistoryResponse,
    DebtResponse,
    RejectedChecksResponse,
)

from .config import ResilienceConfig
from .orchestrator import FetchOrchestrator

logger = get_logger(__name__)

PRIMARY_KEY = CacheKey(PRIMARY_CACHE_NAMESPACE)

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_IDENTIFICATION_RE = re.compile(r"[0-9]{11}")


def _validate_variable_id(variable_id: Any) -> int:
    if isinstance(variable_id, bool):
        raise ConfigError("Variable ID must be an integer", field="variable_id", value=variable_id)
    if isinstance(variable_id, str):
        text = variable_id.strip()
        if text.isascii() and text.isdigit():
            variable_id = int(text)
    if not isinstance(variable_id, int) or variable_id <= 0:
        raise ConfigError(
            "Variable ID must be a positive integer", field="variable_id", value=variable_id
        )
    return variable_id


def _validate_date(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise ConfigError(f"{field} must use YYYY-MM-DD format", field=field, value=value)
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ConfigError(f"{field} is not a valid date", field=field, value=value) from e
    return value


def _validate_identification(identification: Any) -> str:
    """Debtor IDs are 11-digit CUIT/CUIL/CDI numbers."""
    value = str(identification).strip()
    if not _IDENTIFICATION_RE.fullmatch(value):
        raise ConfigError(
            "Identification must be an 11-digit CUIT/CUIL/CDI",
            field="identification",
            value=identification,
        )
    return value


class BCRAService:
    """Resilient, cached access to the BCRA API.

    Usage:
        async with BCRAService.from_settings() as service:
            snapshot = await service.fetch_primary()
            series = await service.fetch_series(27, from_date="2025-01-01")
    """

    def __init__(
        self,
        client: BCRAClient | None = None,
        orchestrator: FetchOrchestrator | None = None,
        config: ResilienceConfig | None = None,
    ):
        self.config = config or ResilienceConfig()
        self.client = client or BCRAClient(
            base_url=self.config.base_url,
            timeout=self.config.request_timeout,
            verify_ssl=self.config.verify_ssl,
        )
        self.orchestrator = orchestrator or FetchOrchestrator(config=self.config)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> BCRAService:
        """Create a service configured from environment settings."""
        return cls(config=ResilienceConfig.from_settings(settings))

    async def close(self) -> None:
        """Close upstream session and durable store connection."""
        await self.client.close()
        await self.orchestrator.close()

    async def __aenter__(self) -> BCRAService:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # =========================================================================
    # Monetary statistics
    # =========================================================================

    async def fetch_primary(self) -> BCRAResponse:
        """Resolve the snapshot of all current indicators."""
        return await self.orchestrator.resolve(
            PRIMARY_KEY,
            self.client.get_monetary_snapshot,
            model=BCRAResponse,
        )

    async def fetch_series(
        self,
        variable_id: int,
        from_date: str | None = None,
        to_date: str | None = None,
        offset: int = 0,
        limit: int = DEFAULT_SERIES_LIMIT,
    ) -> BCRAResponse:
        """Resolve the time series of one variable.

        Args:
            variable_id: BCRA variable ID (positive integer)
            from_date: Start date (YYYY-MM-DD)
            to_date: End date (YYYY-MM-DD)
            offset: Pagination offset (0-1000000)
            limit: Page size (1-3000)

        Raises:
            ConfigError: Invalid parameter combination
        """
        variable_id = _validate_variable_id(variable_id)
        from_date = _validate_date(from_date, "from_date")
        to_date = _validate_date(to_date, "to_date")

        if (
            isinstance(offset, bool)
            or not isinstance(offset, int)
            or not 0 <= offset <= MAX_SERIES_OFFSET
        ):
            raise ConfigError(
                f"Offset must be between 0 and {MAX_SERIES_OFFSET}", field="offset", value=offset
            )
        if (
            isinstance(limit, bool)
            or not isinstance(limit, int)
            or not 1 <= limit <= MAX_SERIES_LIMIT
        ):
            raise ConfigError(
                f"Limit must be between 1 and {MAX_SERIES_LIMIT}", field="limit", value=limit
            )
        if from_date and to_date and from_date > to_date:
            raise ConfigError(
                "from_date must not be after to_date",
                field="from_date",
                value=f"{from_date} > {to_date}",
            )

        key = CacheKey("series", (variable_id, from_date, to_date, offset, limit))

        async def operation() -> BCRAResponse:
            return await self.client.get_variable_series(
                variable_id, desde=from_date, hasta=to_date, offset=offset, limit=limit
            )

        return await self.orchestrator.resolve(key, operation, model=BCRAResponse)

    # =========================================================================
    # Central de Deudores
    # =========================================================================

    async def fetch_debts(self, identification: str | int) -> DebtResponse:
        """Resolve the current debt situation of a debtor."""
        ident = _validate_identification(identification)
        return await self.orchestrator.resolve(
            CacheKey("deudas", (ident,)),
            lambda: self.client.get_debts(ident),
            model=DebtResponse,
        )

    async def fetch_debt_history(self, identification: str | int) -> DebtHistoryResponse:
        """Resolve the historical debt situation of a debtor."""
        ident = _validate_identification(identification)
        return await self.orchestrator.resolve(
            CacheKey("deudas-historicas", (ident,)),
            lambda: self.client.get_debt_history(ident),
            model=DebtHistoryResponse,
        )

    async def fetch_rejected_checks(self, identification: str | int) -> RejectedChecksResponse:
        """Resolve the rejected checks registered against a debtor."""
        ident = _validate_identification(identification)
        return await self.orchestrator.resolve(
            CacheKey("cheques-rechazados", (ident,)),
            lambda: self.client.get_rejected_checks(ident),
            model=RejectedChecksResponse,
        )

    # =========================================================================
    # Cache warm job
    # =========================================================================

    async def refresh_primary(self) -> RefreshReport:
        """Refetch the primary snapshot and persist it to the durable store.

        Never raises FetchError: failures are reported in the returned report.
        """
        report = RefreshReport(key=str(PRIMARY_KEY), started_at=datetime.now())

        with log_context(operation="refresh_primary", correlation_id=uuid.uuid4().hex[:12]):
            try:
                data, persisted = await self.orchestrator.refresh(
                    PRIMARY_KEY, self.client.get_monetary_snapshot
                )
                report.success = True
                report.records = len(data.results)
                report.persisted = persisted
            except FetchError as e:
                report.errors.append(str(e))
                report.error_kind = e.kind.value
            finally:
                report.ended_at = datetime.now()

            if report.success:
                logger.info(
                    f"Primary snapshot refreshed: {report.records} variables",
                    extra={"persisted": report.persisted},
                )
            else:
                logger.error(
                    "Primary snapshot refresh failed",
                    extra={"error_kind": report.error_kind},
                )

        return report

    def primary_cache_info(self) -> CacheInfo:
        """Describe the cache state of the primary snapshot."""
        return self.orchestrator.cache_info(PRIMARY_KEY)
