"""
Configuration settings for offline-sync.

Uses Pydantic Settings to load environment variables for the local SQLite
store, the remote PostgreSQL store, connectivity probing, and reconciliation
defaults.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Local store
    local_db_path: str = Field("offline_sync.db", alias="LOCAL_DB_PATH")
    local_db_timeout_seconds: float = Field(5.0, alias="LOCAL_DB_TIMEOUT_SECONDS")

    # Remote store
    remote_db_host: str = Field("localhost", alias="REMOTE_DB_HOST")
    remote_db_port: int = Field(5432, alias="REMOTE_DB_PORT")
    remote_db_user: str = Field("postgres", alias="REMOTE_DB_USER")
    remote_db_password: str = Field("postgres", alias="REMOTE_DB_PASSWORD")
    remote_db_name: str = Field("offline_sync", alias="REMOTE_DB_NAME")
    remote_table: str = Field("donations", alias="REMOTE_TABLE")
    remote_connect_timeout_seconds: int = Field(5, alias="REMOTE_CONNECT_TIMEOUT_SECONDS")

    # Reconciliation
    restore_page_size: int = Field(999, alias="RESTORE_PAGE_SIZE", gt=0)
    push_interval_seconds: float = Field(30.0, alias="PUSH_INTERVAL_SECONDS", gt=0)

    # Connectivity
    connectivity_timeout_seconds: float = Field(2.0, alias="CONNECTIVITY_TIMEOUT_SECONDS")
    connectivity_cache_ttl_seconds: float = Field(10.0, alias="CONNECTIVITY_CACHE_TTL_SECONDS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(False, alias="JSON_LOGS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def build_remote_dsn(settings: Optional[Settings] = None) -> str:
    """Compose the remote PostgreSQL DSN from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.remote_db_user}:{settings.remote_db_password}"
        f"@{settings.remote_db_host}:{settings.remote_db_port}/{settings.remote_db_name}"
    )


__all__ = ["Settings", "build_remote_dsn", "get_settings"]
