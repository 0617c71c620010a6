"""
Application configuration module.

Loads settings from environment variables (or .env file) using pydantic-settings.
Database credentials come from the environment; nothing sensitive is hardcoded.
"""

import os
from typing import FrozenSet

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the VC back-office service.

    Shared by the REST API, the MCP endpoints and the CLI, so every entry
    point talks to the same database and logs the same way.
    """

    PROJECT_NAME: str = "VC Back-Office API"
    API_V1_STR: str = "/api/v1"

    # ── SQLite mode (no external DB required) ──
    USE_SQLITE: bool = False
    # Empty means a shared in-memory database; set a path to keep data
    # between CLI invocations.
    SQLITE_PATH: str = ""

    # ── PostgreSQL connection parameters ──
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SERVER: str = ""
    POSTGRES_DB: str = ""
    POSTGRES_PORT: int = 5432

    @model_validator(mode="after")
    def _require_pg_credentials_unless_sqlite(self) -> "Settings":
        """Fail fast if PostgreSQL credentials are missing in production mode."""
        if not self.USE_SQLITE:
            missing = [
                name
                for name in (
                    "POSTGRES_USER",
                    "POSTGRES_PASSWORD",
                    "POSTGRES_SERVER",
                    "POSTGRES_DB",
                )
                if not getattr(self, name)
            ]
            if missing:
                vars_list = ", ".join(missing)
                raise ValueError(
                    f"PostgreSQL mode requires these environment variables: "
                    f"{vars_list}.\n\n"
                    f"Either export them (or put them in .env):\n"
                    f"    POSTGRES_USER=backoffice\n"
                    f"    POSTGRES_PASSWORD=backoffice\n"
                    f"    POSTGRES_SERVER=127.0.0.1\n"
                    f"    POSTGRES_DB=backoffice\n\n"
                    f"or run against SQLite instead:\n"
                    f"    USE_SQLITE=true SQLITE_PATH=./backoffice.db backoffice db init"
                )
        return self

    # ── Connection pool tuning (PostgreSQL only) ──
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # ── CORS ──
    CORS_ORIGINS: str = "*"

    # ── Logging ──
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT: int = 5

    # ── Money ──
    # ISO-4217 codes accepted for NAV calculations and investments.
    SUPPORTED_CURRENCIES: str = "USD,EUR,GBP,CHF,JPY,CAD,AUD,SGD,HKD,SEK,NOK,DKK,CNY,INR,BRL"
    DEFAULT_CURRENCY: str = "USD"

    # ── Authentication ──
    # Header the bundled authenticator reads the caller's email from.
    AUTH_HEADER: str = "X-User-Email"
    # Where `backoffice auth login` stores the CLI identity.
    CLI_CONFIG_DIR: str = os.path.join(os.path.expanduser("~"), ".backoffice")

    @property
    def currency_codes(self) -> FrozenSet[str]:
        """Parsed, upper-cased set of ``SUPPORTED_CURRENCIES``."""
        return frozenset(
            code.strip().upper() for code in self.SUPPORTED_CURRENCIES.split(",") if code.strip()
        )

    @property
    def DATABASE_URL(self) -> str:
        """Construct the async database DSN."""
        if self.USE_SQLITE:
            if self.SQLITE_PATH:
                return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"
            return "sqlite+aiosqlite://"
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
