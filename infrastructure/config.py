"""Configuration management using Pydantic Settings."""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Stay pricing and booking settings, read from STAY_* environment variables or .env"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STAY_",
        extra="ignore",
    )

    # Application
    app_name: str = "Stay Booking API"
    app_version: str = "1.0.0"

    # Pricing and availability
    default_currency: str = "EUR"
    default_max_stay: int = 30
    default_included_occupancy: int = 2

    # Guests
    max_guest_age: int = 150
    inclusive_age_thresholds: bool = True
    near_capacity_margin: int = 1

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"

    # Auth (override secret_key outside development)
    secret_key: str = "your-secret-key-keep-it-secret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
