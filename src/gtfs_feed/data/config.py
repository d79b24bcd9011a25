from datetime import date
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedSettings(BaseSettings):
    """Configuration for feed loading.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    feed_path: Path | None = Field(default=None, alias="GTFS_FEED_PATH")

    # Anchor date for stop_times timestamps; None means "today" at import time
    reference_date: date | None = Field(default=None, alias="GTFS_REFERENCE_DATE")

    log_level: str = Field(default="INFO", alias="GTFS_LOG_LEVEL")


@lru_cache
def get_settings() -> FeedSettings:
    """Get feed settings (cached singleton).

    Returns:
        FeedSettings with values from .env file or environment variables.
    """
    return FeedSettings()
