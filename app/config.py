"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the notification gateway consumed by the sync client",
        min_length=1,
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to every gateway request",
        gt=0,
    )
    identity_header: str = Field(
        default="X-User-Id",
        description="Header carrying the authenticated identity between client and service",
        min_length=1,
    )
    notifications_ws_path: str = Field(
        default="/notifications/ws",
        description="Path of the websocket streaming notification changes",
        min_length=1,
    )
    notifications_limit: int = Field(
        default=50,
        description="Maximum number of notifications returned by the list endpoint",
        gt=0,
    )
    app_timezone: str | None = Field(
        default="UTC",
        description="Timezone used to stamp notifications (IANA name or UTC+HH:MM)",
    )

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
