"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance so the statement store,
upload limits and logging are configured in one place.
"""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Statement storage backend
    STATEMENT_STORE: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Where imported statements are kept: memory or supabase",
    )

    # Supabase (required when STATEMENT_STORE=supabase)
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service-role key used by the statement store",
    )

    # Imports
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted statement upload, in bytes",
    )
    IMPORT_SAMPLE_SIZE: int = Field(
        default=10,
        ge=1,
        description="Rows shown to importers when detecting the bank format",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    @model_validator(mode="after")
    def _require_supabase_credentials(self) -> "Settings":
        if self.STATEMENT_STORE == "supabase" and not (
            self.SUPABASE_URL and self.SUPABASE_SERVICE_KEY
        ):
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required when STATEMENT_STORE=supabase"
            )
        return self

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def json_logs(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings: allows test override."""
    return Settings()


# Module-level singleton; a misconfigured environment defers to test fixtures
try:
    settings = get_settings()
except Exception:
    settings = None  # type: ignore[assignment]
