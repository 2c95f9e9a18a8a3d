"""
Configuration Management for BetLedger.

Uses pydantic-settings for robust environment variable loading and validation.
The ledger runs on PostgreSQL (asyncpg) in production and on SQLite
(aiosqlite) for local use and tests; plain driver-less URLs for either
backend are rewritten to their async driver.
"""

import logging
from typing import List, Optional
from pydantic import Field, PostgresDsn, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Driver-less URL prefixes and their async equivalents
ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def to_async_url(url: str) -> str:
    """Rewrite a driver-less database URL to use its async driver."""
    for prefix, async_prefix in ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return url.replace(prefix, async_prefix, 1)
    return url


class Settings(BaseSettings):
    """
    Application Settings.

    Loads configuration from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # App Info
    APP_NAME: str = "BetLedger"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_USER: str = "betledger"
    POSTGRES_PASSWORD: str = "betledger_password"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "betledger"

    # Optional override for full URL (postgresql://... or sqlite:///...)
    DATABASE_URL: Optional[str] = None

    # Connection pool (ignored for SQLite)
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_RECYCLE: int = Field(default=3600, ge=-1)

    @computed_field
    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async DSN: DATABASE_URL with its async driver, or built from the POSTGRES_* parts."""
        if self.DATABASE_URL:
            return to_async_url(self.DATABASE_URL)

        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB
        ))

    # HTTP
    CORS_ORIGINS: str = "*"
    RATE_LIMIT: str = "120/minute"

    # Analytics
    MIN_BUCKET_SAMPLES: int = Field(default=5, ge=1)
    KELLY_CAP_PCT: float = Field(default=25.0, gt=0, le=100)
    DEFAULT_WINDOW_DAYS: int = Field(default=30, ge=1)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def cors_origins(self) -> List[str]:
        """CORS_ORIGINS split on commas, blanks dropped."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
