"""
Music League Engine - Configuration

Single source of truth for runtime settings. Values come from the process
environment, falling back to the env file named by ENV_FILE (default .env).

ENV VARS:
  LEAGUE_DATA_URL               - Base URL; archives live at {url}/{category_id}/{fileName}
  LEAGUE_CATEGORIES_FILE        - JSON file with the category -> league archive table
  LOAD_TIMEOUT_MS               - Per-archive deadline (default 5000)
  MAX_ARCHIVE_BYTES             - Raw ZIP payload cap (default 50 MB)
  MAX_ENTRIES                   - Entry count cap (default 100)
  MAX_ENTRY_BYTES               - Declared uncompressed size cap per entry (default 20 MB)
  MAX_TOTAL_UNCOMPRESSED_BYTES  - Declared uncompressed total cap (default 200 MB)
  HTTP_CONNECT_TIMEOUT_S        - Connect timeout for archive fetches (default 10)
  ENVIRONMENT                   - dev | staging | prod (default dev)
  LOG_LEVEL                     - DEBUG | INFO | WARNING | ERROR (default INFO)
  DEFAULT_PRIVACY_MODE          - full | initials (default full, passed through to consumers)

Usage:
    from musicleague.config import get_settings

    settings = get_settings()
    print(settings.LEAGUE_DATA_URL)
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, TypeAdapter, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.logging import configure_logging as _configure_logging
from .ingest.archive import ArchiveLimits
from .models import LeagueCategory

logger = logging.getLogger(__name__)

MB = 1024 * 1024


class Settings(BaseSettings):
    """Runtime settings for loaders, the API and the CLI."""

    model_config = SettingsConfigDict(
        env_file=os.environ.get("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # ARCHIVE SOURCES
    # =========================================================================

    LEAGUE_DATA_URL: str = Field(
        default="http://localhost:8000/data",
        description="Base URL archives are served under",
    )
    LEAGUE_CATEGORIES_FILE: str | None = Field(
        default=None,
        description="Path to the JSON category table",
    )

    # =========================================================================
    # LOAD LIMITS
    # =========================================================================

    LOAD_TIMEOUT_MS: int = Field(default=5000, gt=0, description="Per-archive deadline in ms")
    MAX_ARCHIVE_BYTES: int = Field(default=50 * MB, gt=0)
    MAX_ENTRIES: int = Field(default=100, gt=0)
    MAX_ENTRY_BYTES: int = Field(default=20 * MB, gt=0)
    MAX_TOTAL_UNCOMPRESSED_BYTES: int = Field(default=200 * MB, gt=0)
    HTTP_CONNECT_TIMEOUT_S: float = Field(default=10.0, gt=0)

    # =========================================================================
    # ENVIRONMENT CONTROL
    # =========================================================================

    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(default="dev")
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    DEFAULT_PRIVACY_MODE: Literal["full", "initials"] = Field(
        default="full",
        description="Name display policy handed to consumers; the engine never applies it",
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_values(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Strip quotes/whitespace and normalize environment and log level spellings."""
        for key, value in list(values.items()):
            if isinstance(value, str):
                values[key] = value.strip().strip('"').strip("'").strip()

        for key in list(values):
            if key.upper() == "ENVIRONMENT" and isinstance(values[key], str):
                raw = values[key].lower()
                if raw == "production":
                    logger.warning("ENVIRONMENT='production' is deprecated; use 'prod'. Normalizing.")
                    raw = "prod"
                elif raw == "development":
                    logger.warning("ENVIRONMENT='development' is deprecated; use 'dev'. Normalizing.")
                    raw = "dev"
                values[key] = raw
            elif key.upper() == "LOG_LEVEL" and isinstance(values[key], str):
                values[key] = values[key].upper()

        return values

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "prod"

    @property
    def archive_limits(self) -> ArchiveLimits:
        return ArchiveLimits(
            max_archive_bytes=self.MAX_ARCHIVE_BYTES,
            max_entries=self.MAX_ENTRIES,
            max_entry_bytes=self.MAX_ENTRY_BYTES,
            max_total_bytes=self.MAX_TOTAL_UNCOMPRESSED_BYTES,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Clear the cached settings (for testing)."""
    get_settings.cache_clear()


def configure_logging(settings: Settings | None = None) -> None:
    """JSON logs in prod, console logs elsewhere."""
    if settings is None:
        settings = get_settings()
    _configure_logging(level=settings.LOG_LEVEL, json_output=settings.is_production)


# =========================================================================
# CATEGORY TABLE
# =========================================================================

_CATEGORIES_ADAPTER = TypeAdapter(list[LeagueCategory])


def parse_categories(data: Any) -> list[LeagueCategory]:
    """Validate a decoded category table (list of category objects)."""
    return _CATEGORIES_ADAPTER.validate_python(data)


def load_categories(path: str | Path) -> list[LeagueCategory]:
    """
    Load the category -> league archive table from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the table does not match the schema
    """
    path = Path(path).expanduser()
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    categories = parse_categories(data)
    logger.info(
        "Loaded %d categories (%d archives) from %s",
        len(categories),
        sum(len(c.leagues) for c in categories),
        path,
    )
    return categories
