"""Two-tier cache: in-process freshness tier and durable fallback tier."""

from .fallback import FallbackStore
from .tiered import TieredCache

__all__ = ["FallbackStore", "TieredCache"]
