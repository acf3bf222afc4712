"""Application configuration using Pydantic Settings."""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Migration settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="UGC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Content repository
    database_url: str = "sqlite+aiosqlite:///./ugcmigrate.db"
    image_staging_path: str = "/content/usergenerated/tmp/social/images"

    # Only import images whose URL contains this substring (empty = all)
    image_include_filter: str = ""

    # Outbound image fetches
    http_timeout_seconds: float | None = None  # None waits indefinitely
    user_agent: str = "ugc-migrate/0.1.0"

    # Debug mode
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging for migration runs."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
    )
