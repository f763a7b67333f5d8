"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
LOG_FORMATS = frozenset({"text", "json"})


class Settings(BaseSettings):
    """Typed runtime configuration sourced from `TASKTRAIL_*` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKTRAIL_",
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"
    database_url: str = "sqlite+aiosqlite:///./tasktrail.db"

    # Database lifecycle
    db_auto_migrate: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False

    cors_origins: str = ""

    # Number of most recently finished tasks shown in the done lane.
    done_lane_limit: int = Field(default=10, ge=0)

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        self.log_format = self.log_format.strip().lower()
        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"TASKTRAIL_LOG_FORMAT must be one of {', '.join(sorted(LOG_FORMATS))}.",
            )
        # In dev, default to applying Alembic migrations at startup to avoid
        # schema drift between the models and an existing database file.
        if "db_auto_migrate" not in self.model_fields_set and self.environment == "dev":
            self.db_auto_migrate = True
        return self


settings = Settings()
