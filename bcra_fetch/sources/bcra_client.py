"""
BCRA (Banco Central de la República Argentina) API Client

REST API client for monetary statistics and the debtor registry.
Supports: current indicators snapshot, variable time series, debts,
historical debts, rejected checks.

API Documentation: https://www.bcra.gob.ar/BCRAyVos/catalogo-de-APIs-banco-central.asp

Usage:
    from bcra_fetch.sources import BCRAClient

    async with BCRAClient() as client:
        snapshot = await client.get_monetary_snapshot()
        series = await client.get_variable_series(27, desde="2025-01-01")

Each call performs exactly one HTTP attempt with a hard timeout; retries,
rate limiting and caching live in the orchestrator.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from bcra_fetch.config.constants import (
    BCRA_BASE_URL,
    DEBTS_PATH,
    DEFAULT_HEADERS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SERIES_LIMIT,
    MONETARY_PATH,
)
from bcra_fetch.core.errors import (
    DataNotFoundError,
    NetworkError,
    UpstreamAuthError,
    UpstreamParseError,
    UpstreamTimeoutError,
)
from bcra_fetch.observability.logger import get_logger

from .models import BCRAResponse, DebtHistoryResponse, DebtResponse, RejectedChecksResponse

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class BCRAClient:
    """BCRA public API client."""

    SOURCE = "bcra"

    def __init__(
        self,
        base_url: str = BCRA_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        verify_ssl: bool = True,
        headers: dict[str, str] | None = None,
    ):
        """
        Initialize BCRA API client.

        Args:
            base_url: API root URL
            timeout: Hard timeout per request in seconds
            verify_ssl: Verify TLS certificates
            headers: Extra headers merged over the browser-like defaults
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}

        # Session
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            connector = aiohttp.TCPConnector(ssl=None if self.verify_ssl else False)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers=self.headers,
                connector=connector,
            )
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "BCRAClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """Perform one GET and decode the JSON body.

        Raises:
            UpstreamAuthError: 401/403
            DataNotFoundError: 404
            NetworkError: 429, 5xx, connection failure
            UpstreamTimeoutError: hard timeout exceeded
            UpstreamParseError: body is not JSON
        """
        session = await self._get_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.get(url, params=params) as resp:
                if resp.status in (401, 403):
                    logger.error(
                        "UNAUTHORIZED: BCRA API rejected the request",
                        extra={"status": resp.status, "path": path},
                    )
                    raise UpstreamAuthError(
                        f"BCRA API unauthorized access ({resp.status})",
                        status=resp.status,
                        source=path,
                    )

                if resp.status == 404:
                    raise DataNotFoundError(
                        f"BCRA API resource not found: {path}", source=path
                    )

                if resp.status != 200:
                    text = await resp.text()
                    raise NetworkError(
                        f"BCRA API error: {resp.status} {text[:200]}",
                        status=resp.status,
                        source=path,
                    )

                body = await resp.text()

        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"BCRA API request timed out after {self.timeout:.0f}s",
                timeout_seconds=self.timeout,
                source=path,
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to fetch BCRA data: {e}", source=path) from e

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            logger.error(
                "Error parsing JSON",
                extra={"path": path, "preview": body[:100]},
            )
            raise UpstreamParseError("Failed to parse BCRA data", source=path) from e

    @staticmethod
    def _parse(model: type[M], data: Any, path: str) -> M:
        """Validate a decoded body against the expected payload shape."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise UpstreamParseError(
                f"Unexpected BCRA response shape: {e.error_count()} errors",
                source=path,
            ) from e

    # =========================================================================
    # Monetary statistics
    # =========================================================================

    async def get_monetary_snapshot(self) -> BCRAResponse:
        """Fetch the latest value of every published variable."""
        data = await self._get_json(MONETARY_PATH)
        return self._parse(BCRAResponse, data, MONETARY_PATH)

    @staticmethod
    def series_query(
        desde: str | None = None,
        hasta: str | None = None,
        offset: int = 0,
        limit: int = DEFAULT_SERIES_LIMIT,
    ) -> dict[str, str]:
        """Build series query parameters, omitting upstream defaults."""
        params: dict[str, str] = {}
        if desde:
            params["desde"] = desde
        if hasta:
            params["hasta"] = hasta
        if offset > 0:
            params["offset"] = str(offset)
        if limit != DEFAULT_SERIES_LIMIT:
            params["limit"] = str(limit)
        return params

    async def get_variable_series(
        self,
        variable_id: int,
        desde: str | None = None,
        hasta: str | None = None,
        offset: int = 0,
        limit: int = DEFAULT_SERIES_LIMIT,
    ) -> BCRAResponse:
        """Fetch the time series of one variable.

        Args:
            variable_id: BCRA variable ID
            desde: Start date (YYYY-MM-DD)
            hasta: End date (YYYY-MM-DD)
            offset: Pagination offset
            limit: Page size (max 3000)
        """
        path = f"{MONETARY_PATH}/{variable_id}"
        params = self.series_query(desde, hasta, offset, limit)
        data = await self._get_json(path, params or None)
        return self._parse(BCRAResponse, data, path)

    # =========================================================================
    # Central de Deudores
    # =========================================================================

    async def get_debts(self, identification: str) -> DebtResponse:
        """Fetch the current debt situation for a CUIT/CUIL/CDI."""
        path = f"{DEBTS_PATH}/{identification}"
        return self._parse(DebtResponse, await self._get_json(path), path)

    async def get_debt_history(self, identification: str) -> DebtHistoryResponse:
        """Fetch the historical debt situation for a CUIT/CUIL/CDI."""
        path = f"{DEBTS_PATH}/Historicas/{identification}"
        return self._parse(DebtHistoryResponse, await self._get_json(path), path)

    async def get_rejected_checks(self, identification: str) -> RejectedChecksResponse:
        """Fetch rejected checks for a CUIT/CUIL/CDI."""
        path = f"{DEBTS_PATH}/ChequesRechazados/{identification}"
        return self._parse(RejectedChecksResponse, await self._get_json(path), path)
