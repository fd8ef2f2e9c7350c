"""Application settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings."""

    debug_mode: bool = False
    database_url: str = ""  # Required for any persistence
    redis_url: str = "redis://localhost:6379/0"
    connection_cache_enabled: bool = True
    onboarding_cache_ttl_seconds: int = 900  # 15 minutes, the tracking code lifetime
    connection_cache_ttl_seconds: int = 3600
    realtime_enabled: bool = True
    default_ticket_expiration_days: int = 30
    message_window_hours: int = 24
    meta_app_secret: str = ""
    meta_validate_signature: bool = False
    meta_webhook_verify_token: str = ""
    webhook_log_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
    )


settings = Settings()
