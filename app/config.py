"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Douban Discover", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=5055, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    douban_api_url: HttpUrl = Field(
        default="https://m.douban.com/rexxar/api/v2", alias="DOUBAN_API_URL"
    )
    douban_rating_url: HttpUrl = Field(
        default="https://douban-idatabase.kfstorm.com/api/item",
        alias="DOUBAN_RATING_URL",
    )
    douban_user_agent: str = Field(
        default=DEFAULT_USER_AGENT, alias="DOUBAN_USER_AGENT"
    )
    douban_referer: str = Field(
        default="https://movie.douban.com/", alias="DOUBAN_REFERER"
    )
    douban_page_size: int = Field(
        default=20, alias="DOUBAN_PAGE_SIZE", ge=1, le=100
    )

    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_language: str = Field(default="zh-CN", alias="TMDB_LANGUAGE")

    match_concurrency: int = Field(
        default=4, alias="MATCH_CONCURRENCY", ge=1, le=32
    )
    rating_timeout_seconds: float = Field(
        default=5.0, alias="RATING_TIMEOUT", gt=0, le=60
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("tmdb_language", mode="before")
    @classmethod
    def _normalise_language(cls, value: object) -> object:
        """Accept ``zh_cn`` style tags and return ``zh-CN``."""

        if not isinstance(value, str):
            return value
        cleaned = value.strip().replace("_", "-")
        if not cleaned:
            return "zh-CN"
        language, _, region = cleaned.partition("-")
        if not region:
            return language.lower()
        return f"{language.lower()}-{region.upper()}"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
