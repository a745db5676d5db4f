"""Application settings using Pydantic. No side effects at import time."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    BCRA_BASE_URL,
    CACHE_MAX_TTL,
    CIRCUIT_FAILURE_THRESHOLD,
    CIRCUIT_RESET_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    ERROR_TTL,
    FALLBACK_KEY_PREFIX,
    FALLBACK_TTL,
    MAX_RETRIES,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW,
    REFRESH_HOURS,
    REFRESH_TIMEZONE,
    RETRY_DELAY,
)


def mask_secret(value: str | None, visible_chars: int = 4) -> str:
    """Mask a secret value for safe logging."""
    if not value:
        return "(not set)"
    if len(value) <= visible_chars * 2:
        return "*" * len(value)
    return f"{value[:visible_chars]}...{value[-visible_chars:]}"


class Settings(BaseSettings):
    """Application settings with validation.

    Settings are loaded from environment variables and .env file.
    No side effects at class definition time - .env is loaded only when
    Settings() is instantiated.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # === Upstream ===
    bcra_base_url: str = BCRA_BASE_URL
    request_timeout: Annotated[float, Field(gt=0)] = DEFAULT_REQUEST_TIMEOUT
    verify_ssl: bool = Field(default=True, description="Verify upstream TLS certificates")

    # === Rate Limits ===
    rate_limit_max_requests: Annotated[int, Field(gt=0)] = RATE_LIMIT_MAX_REQUESTS
    rate_limit_window: Annotated[float, Field(gt=0)] = RATE_LIMIT_WINDOW

    # === Circuit Breaker ===
    circuit_failure_threshold: Annotated[int, Field(gt=0)] = CIRCUIT_FAILURE_THRESHOLD
    circuit_reset_timeout: Annotated[float, Field(ge=0)] = CIRCUIT_RESET_TIMEOUT

    # === Retry ===
    max_retries: Annotated[int, Field(ge=0)] = MAX_RETRIES
    retry_delay: Annotated[float, Field(ge=0)] = RETRY_DELAY

    # === In-process cache ===
    cache_max_ttl: Annotated[float, Field(gt=0)] = CACHE_MAX_TTL
    error_ttl: Annotated[float, Field(ge=0)] = ERROR_TTL
    refresh_hours: list[int] = Field(default_factory=lambda: list(REFRESH_HOURS))
    refresh_timezone: str = REFRESH_TIMEZONE

    # === Durable fallback (Redis / Upstash) ===
    redis_url: str | None = None
    fallback_key_prefix: str = FALLBACK_KEY_PREFIX
    fallback_ttl: Annotated[int, Field(gt=0)] = FALLBACK_TTL

    # === Logging ===
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("refresh_hours")
    @classmethod
    def validate_refresh_hours(cls, value: list[int]) -> list[int]:
        """Checkpoint hours must be valid hours of the day."""
        for hour in value:
            if not 0 <= hour <= 23:
                raise ValueError(f"Refresh hour out of range: {hour}")
        return sorted(set(value))

    @property
    def has_redis(self) -> bool:
        """Check if the durable fallback store is configured."""
        return bool(self.redis_url)

    def log_config_summary(self, logger) -> None:
        """Log configuration summary with masked secrets."""
        logger.info("=== Configuration Summary ===")
        logger.info(f"BCRA base URL: {self.bcra_base_url}")
        logger.info(
            f"Rate limit: {self.rate_limit_max_requests} req / {self.rate_limit_window:.0f}s"
        )
        logger.info(
            f"Circuit breaker: {self.circuit_failure_threshold} failures, "
            f"{self.circuit_reset_timeout:.0f}s reset"
        )
        logger.info(f"Refresh hours: {self.refresh_hours} ({self.refresh_timezone})")
        logger.info(f"REDIS_URL: {mask_secret(self.redis_url, 8)}")
        logger.info("=============================")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This is the recommended way to access settings to avoid
    repeated .env file parsing.
    """
    return Settings()
