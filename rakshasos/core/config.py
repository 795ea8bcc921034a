"""
Environment configuration — single source of truth for engine settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local development.

Usage:
    from rakshasos.core.config import get_settings
    print(get_settings().API_BASE_URL)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine-wide settings loaded from environment variables or .env file.

    Precedence: env var (RAKSHASOS_*) > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_prefix="RAKSHASOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "RakshaSOS"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Remote service (contacts + user settings) ──
    API_BASE_URL: str = "http://localhost:5000"
    API_TIMEOUT_SECONDS: float = 15.0
    API_MAX_RETRIES: int = 2  # GET only; writes are never retried

    # ── Contacts ──
    MAX_CONTACTS: int = 10

    # ── Durable storage ──
    REDIS_URL: str = "redis://localhost:6379/0"
    LOCATION_STORAGE_KEY: str = "rakshasos:last_location"

    # ── Delivery channel ──
    SMS_PROVIDER: str = "simulation"  # simulation | http
    SMS_GATEWAY_URL: Optional[str] = None
    SMS_API_KEY: Optional[str] = None

    # ── Messaging ──
    DEFAULT_LANGUAGE: str = "en"  # settings language when the profile has none

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
