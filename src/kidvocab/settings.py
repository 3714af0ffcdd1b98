from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Don't require .env file to exist
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # Database configuration
    DATABASE_URL: str
    DB_CONNECT_TIMEOUT: int = 30

    # Learning rules
    STREAK_LOOKBACK_DAYS: int = 30
    STARTER_PACK_CATEGORIES: List[str] = ["Home", "School"]
    DEFAULT_PLAN_SIZE: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"

    # Environment
    TESTING: str = "false"


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings instance, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


# DO NOT instantiate settings at module level - DATABASE_URL is validated on creation
# Use get_settings() instead wherever you need settings
