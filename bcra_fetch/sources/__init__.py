"""Upstream data sources."""

from .bcra_client import BCRAClient
from .models import (
    BCRAResponse,
    BCRAVariable,
    DebtHistoryResponse,
    DebtResponse,
    RejectedChecksResponse,
)

__all__ = [
    "BCRAClient",
    "BCRAResponse",
    "BCRAVariable",
    "DebtResponse",
    "DebtHistoryResponse",
    "RejectedChecksResponse",
]
