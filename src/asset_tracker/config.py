"""Centralized configuration management using pydantic-settings.

Configuration is loaded from environment variables with sensible defaults.
All settings can be overridden via environment variables or a .env file.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreType(str, Enum):
    """Supported ledger store backends."""

    MEMORY = "memory"
    SQLITE = "sqlite"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Override via environment variables (prefixed with ASSET_TRACKER_) or .env file.

    Examples:
        ASSET_TRACKER_STORE_TYPE=sqlite
        ASSET_TRACKER_SQLITE_PATH=/var/lib/asset_tracker/ledger.db
        ASSET_TRACKER_LOG_LEVEL=DEBUG
        ASSET_TRACKER_ATOMIC_PLAN_APPLICATION=false
    """

    model_config = SettingsConfigDict(
        env_prefix="ASSET_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Asset Tracker"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT

    # Ledger store
    store_type: StoreType = StoreType.MEMORY
    sqlite_path: Path = Field(
        default=Path("asset_tracker.db"),
        description="SQLite database file path (when store_type=sqlite)",
    )

    # Lot matching
    atomic_plan_application: bool = Field(
        default=True,
        description=(
            "Apply each consumption plan inside a store transaction and roll it "
            "back on failure. When false, failed actions are reported but the "
            "actions already applied are kept."
        ),
    )
    division_precision: int = Field(
        default=28,
        ge=1,
        le=1000,
        description="Significant digits kept when a division does not terminate",
    )

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] | None = Field(
        default=None,
        validate_default=True,
        description="Log output format: 'json' for production, 'console' for development",
    )
    log_file: Path | None = Field(default=None, description="Optional log file path")

    @field_validator("log_format", mode="after")
    @classmethod
    def set_log_format_from_environment(cls, v: str | None, info) -> str:
        """Default to JSON logging in production."""
        if v is None:
            env = info.data.get("environment")
            if env == Environment.PRODUCTION:
                return "json"
            return "console"
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
