"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env
file as a fallback. Pydantic Settings resolves each field in this order:
  1. Environment variables (highest priority)
  2. .env file values
  3. Defaults defined here (lowest priority)

Usage:
    from transfer_api.config import Settings
    app = create_app(Settings(DATABASE_URL="postgresql+asyncpg://..."))
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Internal Transfers API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Internal Transfers API"
    APP_VERSION: str = "0.1.0"
    # "local", "staging", "production" — production switches logs to JSON
    ENVIRONMENT: str = "local"
    DEBUG: bool = False

    # --- Database ---
    # SQLite for local development; use postgresql+asyncpg://... in production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/transfers.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    # How long a SQLite writer waits for the database lock before failing
    SQLITE_BUSY_TIMEOUT_SECONDS: float = 30.0
    # In production, schema changes should be applied out of band
    CREATE_TABLES_ON_STARTUP: bool = True

    # --- Request handling ---
    # A transfer still running after this many seconds is cancelled and rolled back
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Default instance used by transfer_api.main when no explicit Settings is given
settings = Settings()
