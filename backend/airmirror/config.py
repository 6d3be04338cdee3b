"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database (destination store)
    database_url: str = "postgresql+asyncpg://localhost:5432/airmirror"

    # Airtable (source base)
    airtable_pat: str | None = None
    airtable_base_id: str | None = None
    airtable_api_url: str = "https://api.airtable.com/v0"
    airtable_page_size: int = 100

    # Sync settings
    upsert_batch_size: int = 100
    sync_interval_minutes: int = 60
    scheduler_enabled: bool = True
    sync_rate_limit: str = "10/minute"

    # Webhook ingest
    webhook_secret: str | None = None

    # Leaderboard API (customer listing proxy)
    leaderboard_api_base_url: str = "https://leaderboard.sagarfab.com/api/v1"
    leaderboard_api_email: str | None = None
    leaderboard_api_password: str | None = None

    # API settings
    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = ["*"]  # Restrict in production

    # Environment
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
