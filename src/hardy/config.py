"""
Configuration settings for the hardy retry client.

All settings are loaded from environment variables (prefixed with HARDY_)
with sensible defaults. Use a .env file for local development.
"""

import math

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

DEFAULT_WAIT_INTERVAL_MS = 500
DEFAULT_MAX_INTERVAL_MS = 5000
DEFAULT_MAX_RETRIES = 3
DEFAULT_MULTIPLIER = 2.0
MIN_MULTIPLIER = 2.0


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HARDY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Logging ===
    DEBUG: bool = False  # Dump every attempt through the debug observer
    CONFIGURE_LOGGING: bool = False  # Attach a handler to the "hardy" loggers
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # "production" renders JSON

    # === Backoff ===
    WAIT_INTERVAL_MS: int = DEFAULT_WAIT_INTERVAL_MS  # Base interval
    MAX_INTERVAL_MS: int = DEFAULT_MAX_INTERVAL_MS  # 0 means uncapped
    MAX_RETRIES: int = DEFAULT_MAX_RETRIES  # Total attempts, >= 1
    BACKOFF_MULTIPLIER: float = DEFAULT_MULTIPLIER

    # === Identification ===
    USER_AGENT: str | None = None  # None means "hardy/<version>"
    SEND_USER_AGENT: bool = True

    @field_validator("BACKOFF_MULTIPLIER")
    @classmethod
    def _keep_default_multiplier(cls, value: float) -> float:
        # Lower or non-finite multipliers break monotonic growth; ignore them.
        if not math.isfinite(value) or value < MIN_MULTIPLIER:
            logger.warning(
                "Ignoring backoff multiplier below minimum",
                multiplier=value,
                minimum=MIN_MULTIPLIER,
                using=DEFAULT_MULTIPLIER,
            )
            return DEFAULT_MULTIPLIER
        return value


# Global settings instance
settings = Settings()
