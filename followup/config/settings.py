"""Application settings using Pydantic."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FOLLOWUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Note store (REST)
    store_base_url: str = "http://127.0.0.1:8000/api"
    store_token: str | None = None
    request_timeout: float = 30.0

    # Retries apply to GET requests only
    max_retries: int = 2
    retry_delay_seconds: float = 1.0

    # Dates
    reference_timezone: str = "Asia/Kolkata"
    reminder_max_days_ahead: int = 5

    # Customer picker
    directory_page_size: int = 5

    # Session registry; idle sessions are swept on lookup
    max_sessions: int = 500
    session_idle_seconds: float = 1800.0

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
