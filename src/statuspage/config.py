"""Application settings loaded from environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """HTTP server, logging and notification sender settings."""

    # Server
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8080
    REQUEST_TIMEOUT_SECONDS: float = 60.0
    CORS_ORIGINS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "info"
    LOG_FORMAT: str = "json"  # json or text

    # Email sender (log-only when SMTP_HOST is empty)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 25
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_ADDRESS: str = "statuspage@localhost"

    # Telegram sender (log-only when TELEGRAM_BOT_TOKEN is empty)
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    TELEGRAM_TIMEOUT: float = 10.0

    class Config:
        env_file = ".env"
        extra = "ignore"


_settings: Optional[AppSettings] = None


def get_app_settings() -> AppSettings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings
