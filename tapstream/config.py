"""Global configuration using Pydantic settings."""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from ``TAPSTREAM_*`` environment variables."""

    binary: str = "audiotee"
    stop_grace_period: float = Field(default=5.0, ge=0.0)
    start_timeout: Optional[float] = Field(default=None, gt=0.0)
    read_size: int = Field(default=65_536, gt=0)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TAPSTREAM_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return a singleton instance of the application settings."""

    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""

    global _settings
    _settings = None


__all__ = ["Settings", "get_settings", "reset_settings"]
