from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_v1_prefix: str = "/api/v1"

    # Security
    secret_key: str = "changeme"  # override in .env
    access_token_expire_minutes: int = 60

    # Database
    database_url: str

    # Bookings
    booking_auto_approve: bool = True

    # Times in LINE messages are shown in the school's local zone
    display_timezone: str = "Asia/Bangkok"

    # Inventory stats
    stats_clamp_at_zero: bool = True

    # LINE Messaging API
    line_enabled: bool = False
    line_channel_access_token: str | None = None
    line_admin_target: str | None = None
    line_push_url: str = "https://api.line.me/v2/bot/message/push"
    line_timeout_seconds: float = 10.0

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
