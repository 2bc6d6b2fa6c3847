"""Application configuration using Pydantic Settings.

This project loads configuration from environment variables.

Optionally, you may point `ENV_FILE` at a local env file (for development).
In managed deployments, do not set `ENV_FILE` (or set it to an empty string)
so injected secrets are the single source of truth.
"""

import os
from enum import Enum
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


# Load an env file ONLY when explicitly requested.
_env_file = os.getenv("ENV_FILE")
if _env_file:
    env_path = Path(_env_file)
    if env_path.exists() and env_path.is_file():
        from hoopers.core.dotenv import load_env_file

        load_env_file(env_path, overwrite=False)


class Settings(BaseSettings):
    """
    Application settings with type validation.

    Configuration is loaded from environment variables, with support
    for .env files in development.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "hoopers-api"
    app_log_level: str = "INFO"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"

    # OpenTelemetry Configuration
    otel_enabled: bool = False
    otel_service_name: str = "hoopers-api"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_exporter_otlp_headers: str | None = None
    otel_traces_sampler: str = "parent_trace_always"
    otel_traces_sampler_arg: float = 1.0

    # Database - Runtime app user. Local development falls back to SQLite.
    database_url_app: str = "sqlite+aiosqlite:///./.local/hoopers.db"

    # Keyset pagination
    pagination_default_limit: int = 20
    pagination_max_limit: int = 100
    pagination_fetch_timeout_seconds: float = 5.0

    # Metrics token for protecting /metrics endpoint
    metrics_token: str | None = None

    # CORS Configuration
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def async_url(self) -> str:
        """Database URL rewritten for the async driver."""
        url = self.database_url_app
        if url.startswith("postgresql://"):
            return "postgresql+asyncpg://" + url[len("postgresql://") :]
        if url.startswith("postgresql+psycopg://"):
            return "postgresql+asyncpg://" + url[len("postgresql+psycopg://") :]
        if url.startswith("sqlite://"):
            return "sqlite+aiosqlite://" + url[len("sqlite://") :]
        return url

    @property
    def is_postgres(self) -> bool:
        return self.database_url_app.startswith("postgresql")

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

    @field_validator("pagination_max_limit")
    @classmethod
    def validate_max_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"pagination_max_limit must be at least 1, got {v}")
        return v

    @field_validator("pagination_fetch_timeout_seconds")
    @classmethod
    def validate_fetch_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"pagination_fetch_timeout_seconds must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def validate_pagination_limits(self) -> "Settings":
        """Default page size must fit inside the configured maximum."""
        if not 1 <= self.pagination_default_limit <= self.pagination_max_limit:
            raise ValueError(
                "pagination_default_limit must be between 1 and pagination_max_limit "
                f"({self.pagination_max_limit}), got {self.pagination_default_limit}"
            )
        return self

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validate production-specific settings.

        These checks prevent insecure configurations from being deployed to production.
        """
        if self.app_env == AppEnvironment.PROD:
            if not self.is_postgres:
                raise ValueError("DATABASE_URL_APP must use a postgresql scheme in production")

            for origin in self.cors_origins_list:
                if "localhost" in origin or "127.0.0.1" in origin:
                    raise ValueError(
                        f"CORS origins must not contain localhost in production: {origin}"
                    )

        return self


settings = Settings()
