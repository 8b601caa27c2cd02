"""Environment-driven configuration helpers for wagerlab."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="WAGERLAB_", extra="ignore"
    )

    database_url: str = Field(default="sqlite:///./wagerlab.db")

    odds_api_base_url: str = Field(default="http://localhost:8787")
    odds_api_timeout: float = Field(default=30.0, gt=0)

    featured_leagues: list[str] = Field(default_factory=lambda: ["nfl", "ncaaf"])
    featured_limit: int = Field(default=25, ge=1, le=500)
    reference_stake: float = Field(default=100.0, gt=0)

    activity_log_cap: int = Field(default=500, ge=1)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]
