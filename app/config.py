"""Application configuration models."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import MAX_SOURCE_ITEMS


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Medialists", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=5056, alias="PORT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    provider_timeout_seconds: float = Field(
        default=10.0, alias="PROVIDER_TIMEOUT", ge=0.5, le=120.0
    )

    max_source_items: int = Field(
        default=MAX_SOURCE_ITEMS, alias="MAX_SOURCE_ITEMS", ge=2, le=10_000
    )
    default_page_size: int = Field(default=10, alias="PAGE_SIZE", ge=1, le=100)
    bootstrap_actor_name: str = Field(default="admin", alias="BOOTSTRAP_ACTOR")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./medialists.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: object) -> str:
        """Normalise and validate the configured log level name."""

        if value is None:
            return "INFO"
        level = str(value).strip().upper()
        if not level:
            return "INFO"
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError("Unknown log level configured")
        return level

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _blank_api_key(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
