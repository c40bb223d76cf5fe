"""Centralized configuration for levels-search using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from levels_search.errors import ConfigurationError


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every variable carries the ``LEVELS_SEARCH_`` prefix, e.g.
    ``LEVELS_SEARCH_DB_PATH=/var/lib/levels.sqlite``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEVELS_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Store settings
    store_backend: Literal["memory", "sqlite"] = Field(
        default="sqlite", description="Ordered key-value backend holding the index"
    )
    db_path: Path = Field(default=Path("levels.sqlite"), description="SQLite database file for the sqlite backend")
    sqlite_busy_timeout_ms: int = Field(default=30000, ge=0, description="SQLite busy timeout in milliseconds")
    scan_page_size: int = Field(default=256, ge=1, description="Rows fetched per range-scan page")
    sqlite_max_workers: int = Field(default=4, ge=1, description="Threads (and SQLite connections) serving one store")

    # Index settings
    namespace: str = Field(default="levels", description="Key namespace isolating one index from another")
    max_concurrent_scans: int = Field(default=16, ge=1, description="Maximum range scans a query runs at once")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("namespace must not be empty")
        return value


def load_settings(**overrides: object) -> Settings:
    """Build settings from the environment, raising ConfigurationError on bad input."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid levels-search settings: {exc}") from exc
