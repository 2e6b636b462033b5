from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized config.

    Key idea:
    - read from env first (so tests/CI can override),
    - otherwise default to local dev values.
    """

    model_config = SettingsConfigDict(env_prefix="RELEASETRACKER_", extra="ignore")

    # DuckDB file by default (portable, zero-setup)
    db_url: str = "duckdb:///data/releasetracker.duckdb"

    # Microsoft release plans feed
    feed_url: str = "https://releaseplans.microsoft.com/en-US/allreleaseplans/"
    feed_user_agent: str = "D365ReleaseTracker/3.0 (Python)"
    feed_timeout_s: float = 30.0
    feed_max_pages: int = 20
    cache_ttl_seconds: int = 14400

    # change detection
    batch_size: int = 200
    value_max_chars: int = 500

    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173,http://localhost:3000"


settings = Settings()
