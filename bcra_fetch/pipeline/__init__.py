"""Fetch pipeline: orchestrator and the BCRA service facade."""

from .config import ResilienceConfig
from .orchestrator import FetchOrchestrator
from .service import PRIMARY_KEY, BCRAService

__all__ = [
    "BCRAService",
    "FetchOrchestrator",
    "PRIMARY_KEY",
    "ResilienceConfig",
]
