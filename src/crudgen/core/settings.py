"""Process settings for the crudgen command line.

Library code never reads these; every operation takes its dialect and
handle as explicit arguments.  The CLI reads settings once at startup.

Environment variables use the ``CRUDGEN_`` prefix and may also come from
a ``.env`` file in the working directory::

    CRUDGEN_DIALECT=postgresql
    CRUDGEN_DATABASE_URL=postgresql://app@localhost/app
    CRUDGEN_LOG_LEVEL=DEBUG
    CRUDGEN_JSON_LOGS=true

Tags:
    settings, configuration, pydantic, environment, crudgen
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CrudgenSettings(BaseSettings):
    """Settings for the ``crudgen`` CLI.

    Fields
    ──────
    dialect       : Placeholder dialect for ``crudgen sql`` / ``generate``
    database_url  : Default SQLAlchemy URL for ``crudgen check``
    log_level     : Structlog log level
    json_logs     : JSON log lines instead of console rendering
    """

    model_config = SettingsConfigDict(
        env_prefix="CRUDGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    dialect: str = "sqlite"
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL used by `crudgen check` when --database is omitted",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    json_logs: bool = False

    @field_validator("dialect", "log_level")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> CrudgenSettings:
    """Cached settings instance (call ``get_settings.cache_clear()`` to reload)."""
    return CrudgenSettings()


__all__ = ["LOG_LEVELS", "CrudgenSettings", "get_settings"]
