from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "PharmaStock"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./pharmastock.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    API_KEYS: Optional[str] = None
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_REQUIRED: bool = False
    DEFAULT_ACTOR_ID: str = "system"

    # ==============================
    # Stock ledger
    # ==============================
    ADJUSTMENT_MAX_RETRIES: int = 3

    # ==============================
    # Forecast
    # ==============================
    FORECAST_CRITICAL_MONTHS: int = 3
    FORECAST_LOW_MONTHS: int = 6
    EXPIRY_WARNING_MONTHS: int = 6

    # ==============================
    # Log queries
    # ==============================
    LOGS_DEFAULT_LIMIT: int = 10
    LOGS_MAX_LIMIT: int = 500


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
