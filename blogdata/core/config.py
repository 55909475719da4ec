"""Settings for the blog data-access layer.

Configuration is loaded from environment variables. Optionally, point
`ENV_FILE` at a local env file for development; nothing is loaded from disk
unless it is set.
"""

import os
from enum import Enum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


# Query options understood by create_engine() rather than by the driver.
_ENGINE_ONLY_OPTIONS = frozenset(
    {"pool_size", "max_overflow", "pool_timeout", "pool_recycle", "pool_pre_ping", "echo"}
)


class Settings(BaseSettings):
    """
    Database, pool and logging settings.

    Field names map to upper-case environment variables (`DATABASE_URL`,
    `DATABASE_POOL_SIZE`, ...). Values passed to the constructor win.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "blogdata"
    app_log_level: str = "INFO"

    # Observability
    observability_structured_logs: bool = True

    # Database
    database_url: str = "sqlite:///./blog.db"
    database_echo: bool = False

    # Connection pool (ignored for SQLite)
    database_pool_size: int = 5
    database_max_overflow: int = 5
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600
    database_connect_timeout: int = 5

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def sync_url(self) -> str:
        """
        Database URL for the synchronous engine.

        Uses psycopg v3 for PostgreSQL and drops engine-only query options
        that the driver would reject.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+psycopg://", 1)
        elif url.startswith("postgresql+asyncpg://"):
            url = url.replace("postgresql+asyncpg://", "postgresql+psycopg://", 1)

        parts = urlsplit(url)
        if not parts.query:
            return url
        query = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key not in _ENGINE_ONLY_OPTIONS
        ]
        return urlunsplit(parts._replace(query=urlencode(query)))

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("database_pool_size", "database_pool_timeout")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("pool size and timeout must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Reject configurations that are only meant for local use."""
        if self.app_env == AppEnvironment.PROD and not self.database_url.startswith(
            "postgresql"
        ):
            raise ValueError("DATABASE_URL must use a postgresql scheme in production")
        return self


settings = Settings()
