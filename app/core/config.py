from functools import lru_cache
import os
from pathlib import Path
from typing import Optional, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _normalize_database_url(url: Optional[str]) -> Optional[str]:
    """Ensure postgres URLs use the psycopg v3 dialect."""

    if not url:
        return url

    if url.startswith("postgresql+psycopg://"):
        return url

    for prefix in ("postgresql+psycopg2://", "postgres://", "postgresql://"):
        if url.startswith(prefix):
            return url.replace(prefix, "postgresql+psycopg://", 1)

    return url


def _default_database_url() -> str:
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return _normalize_database_url(explicit)
    return "sqlite:///./grocery_prices.db"


class Settings(BaseSettings):
    """Application configuration pulled from environment variables or `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "Grocery Price Compare API"
    environment: str = os.getenv("ENVIRONMENT") or "local"

    database_url: str = _default_database_url()

    default_currency: str = "CLP"
    # Offers captured longer ago than this are flagged stale
    default_stale_hours: int = 48
    max_history_limit: int = 1000

    log_buffer_size: int = 500
    log_request_event_size: int = 200
    log_buffer_file: Optional[Path] = None

    cors_allow_all: bool = True
    cors_allowed_origins: List[str] = []

    @field_validator("database_url", mode="before")
    @classmethod
    def _coerce_database_url(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_database_url(value)

    @field_validator("log_buffer_file", mode="before")
    @classmethod
    def _coerce_log_buffer_file(cls, value: Optional[str]) -> Optional[Path]:
        if value in (None, "", "None"):
            return None
        return Path(value)

    @field_validator("default_currency", mode="before")
    @classmethod
    def _upper_currency(cls, value: Optional[str]) -> str:
        return (value or "CLP").strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
