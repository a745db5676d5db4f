"""Configuration for the fetch layer."""

from .settings import Settings, get_settings, mask_secret

__all__ = ["Settings", "get_settings", "mask_secret"]
