# qrgate/config.py
"""
Centralized application configuration using pydantic-settings.

All settings are read from environment variables or .env file.
Switching the record store from the JSON file to a SQL database is a
.env change only: STORAGE_BACKEND=sql plus DB_URL.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# --- Paths (computed, not from env) ---
PROJECT_ROOT: str = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
TEMPLATE_PATH: str = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Priority: environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )

    # --- Storage ---
    STORAGE_BACKEND: str = Field(
        default="json",
        description="Record store backend: 'json' (flat file) or 'sql'"
    )
    DATA_FILE: str = Field(
        default=os.path.join(PROJECT_ROOT, "data", "qr-codes.json"),
        description="Path of the JSON collection used by the json backend"
    )
    DB_URL: str = Field(
        default="postgresql://localhost:5432/qrgate",
        description="Database URL used by the sql backend"
    )

    # --- Public URLs ---
    PUBLIC_BASE_URL: Optional[str] = Field(
        default=None,
        description="Base URL embedded in dynamic codes; request base URL when unset"
    )

    # --- Server ---
    HOST: str = Field(
        default="127.0.0.1",
        description="Server bind host"
    )
    PORT: int = Field(
        default=8000,
        description="Server bind port"
    )

    # --- Debug / Logging ---
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    LOGS_PATH: str = Field(
        default=os.path.join(PROJECT_ROOT, "logs"),
        description="Directory for access.log and error.log"
    )

    # --- Tracing ---
    OTEL_ENABLED: bool = Field(
        default=False,
        description="Export OpenTelemetry spans to the console"
    )

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        allowed = {"json", "sql"}
        v_lower = v.strip().lower()
        if v_lower not in allowed:
            raise ValueError(f"STORAGE_BACKEND must be one of {allowed}")
        return v_lower

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_upper

    @field_validator("PUBLIC_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance (singleton pattern)."""
    return Settings()
