"""
Application configuration via environment variables.

Uses Pydantic BaseSettings to load and validate all config from env vars
or a .env.local file. Every setting has a default suitable for local
development, so the tracker starts with no configuration at all and
keeps its session in memory.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment selector."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class StoreBackend(str, Enum):
    """Where the call session lives."""

    MEMORY = "memory"
    REDIS = "redis"


class Settings(BaseSettings):
    """
    Central configuration for the Call Tracker service.

    Values are loaded from environment variables first, falling back
    to a `.env.local` file in the project root.
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Environment ──────────────────────────────────────────────
    environment: Environment = Environment.DEVELOPMENT
    app_title: str = Field(default="Call Tracker", description="Title shown in the dashboard and API docs")

    # ── Session Store ────────────────────────────────────────────
    store_backend: StoreBackend = Field(default=StoreBackend.MEMORY, description="Session store backend")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    redis_key_prefix: str = Field(default="calltracker", description="Namespace for all Redis keys")
    session_name: str = Field(default="default", description="Session namespace inside the key prefix")

    # ── Presentation ─────────────────────────────────────────────
    display_timezone: str = Field(default="UTC", description="IANA timezone used for call times in the dashboard")

    # ── HTTP ─────────────────────────────────────────────────────
    cors_origins: str = Field(default="*", description="Comma-separated list of allowed CORS origins")
    rate_limit_max: int = Field(default=300, ge=1, description="Requests per window per client IP")
    rate_limit_window_seconds: int = Field(default=60, ge=1, description="Rate limit window length")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")

    # ── Derived helpers ──────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]

    # ── Validators ───────────────────────────────────────────────

    @field_validator("display_timezone")
    @classmethod
    def validate_display_timezone(cls, v: str) -> str:
        """Reject names the zone database cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, OSError) as e:
            raise ValueError(f"display_timezone must be an IANA timezone name, got {v!r}") from e
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached Settings instance.

    Using lru_cache ensures we read env vars exactly once, and every
    module that calls ``get_settings()`` gets the same object.
    """
    return Settings()
