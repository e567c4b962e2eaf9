"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="FlickPicks", alias="APP_NAME")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_access_token: str | None = Field(default=None, alias="TMDB_ACCESS_TOKEN")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")

    database_url: str = Field(
        default="sqlite:///./flickpicks.db", alias="DATABASE_URL"
    )
    profile_storage_key: str = Field(
        default="flickpicks.profiles", alias="PROFILE_STORAGE_KEY", min_length=1
    )

    interaction_history_limit: int = Field(
        default=100, alias="INTERACTION_HISTORY_LIMIT", ge=1, le=10_000
    )
    search_history_limit: int = Field(
        default=20, alias="SEARCH_HISTORY_LIMIT", ge=1, le=1_000
    )

    detail_cache_seconds: int = Field(
        default=86_400, alias="DETAIL_CACHE_TTL", ge=0
    )
    response_cache_seconds: int = Field(
        default=1_800, alias="RESPONSE_CACHE_TTL", ge=0
    )
    detail_fetch_concurrency: int = Field(
        default=10, alias="DETAIL_FETCH_CONCURRENCY", ge=1, le=50
    )

    fallback_recommendation_count: int = Field(
        default=12, alias="FALLBACK_RECOMMENDATION_COUNT", ge=1, le=100
    )
    personalized_recommendation_count: int = Field(
        default=20, alias="PERSONALIZED_RECOMMENDATION_COUNT", ge=1, le=100
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", "tmdb_access_token", mode="before")
    @classmethod
    def _blank_credentials_to_none(cls, value: object) -> object:
        """Treat empty credential strings as unset."""

        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            level = value.strip().upper()
            if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
                raise ValueError("LOG_LEVEL must be a standard logging level name")
            return level
        return value

    @property
    def has_tmdb_credentials(self) -> bool:
        return bool(self.tmdb_api_key or self.tmdb_access_token)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
