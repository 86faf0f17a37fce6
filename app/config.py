"""
Configuration Management

Uses Pydantic BaseSettings to load configuration from environment variables.
All settings can be overridden via .env file or environment variables.

Environment Variables:
    DOCTOR_NAME: Doctor whose availability is offered (default: Dr Rishabh)
    AVAILABILITY_CSV_PATH: Weekly availability table (doctor,day,start,end)
    CLINIC_TIMEZONE: IANA zone all slots are evaluated in (default: Asia/Kolkata)
    ANTHROPIC_API_KEY: Claude API key for intent and slot extraction
    GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET / GOOGLE_REFRESH_TOKEN: Calendar OAuth
    EMAIL_USER / EMAIL_APP_PASSWORD: SMTP account used for replies
    APP_ENV: Environment name (development/staging/production)
    DEBUG: Enable debug mode (default: False)
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Clinic
    doctor_name: str = "Dr Rishabh"
    """Doctor whose availability rows are read and offered."""

    availability_csv_path: str = "storage/availability.csv"
    """Path to the recurring weekly availability table.

    Columns: doctor, day, start, end
    Example row: Dr Rishabh, Monday, 09:00 AM, 12:00 PM

    The file is re-read on every request so edits apply without restart.
    """

    clinic_timezone: str = "Asia/Kolkata"
    """IANA time zone used for week boundaries, slot instants and new events."""

    arrival_notice_minutes: int = 10
    """How early patients are asked to arrive, quoted in confirmations."""

    # Claude
    anthropic_api_key: str = ""
    """Anthropic API key. Classification and extraction fail without it."""

    claude_model: str = "claude-sonnet-4-20250514"
    """Model used for intent classification and slot extraction."""

    claude_fallback_model: str = "claude-3-5-haiku-20241022"
    """Model tried once when the primary model errors."""

    claude_timeout: float = 30.0
    """Per-request timeout in seconds for the Anthropic client."""

    claude_max_retries: int = 3
    """Attempts per model on rate limits and connection errors."""

    # Google Calendar
    google_client_id: str = ""
    google_client_secret: str = ""
    google_refresh_token: str = ""
    """OAuth2 credentials. The refresh token is issued out of band."""

    google_calendar_id: str = "primary"
    """Calendar that is read for conflicts and written for bookings."""

    # SMTP
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_timeout: float = 30.0
    email_user: str = ""
    email_app_password: str = ""
    """SMTP account used to send replies (SSL)."""

    # Application Environment
    app_env: Literal["development", "staging", "production"] = "development"
    """Current application environment.

    Options:
    - development: Local development, verbose logging, debug enabled
    - staging: Pre-production testing environment
    - production: Live production environment, minimal logging
    """

    debug: bool = False
    """Enable debug mode.

    When True:
    - Detailed error messages in responses
    - DEBUG level logging
    """

    # Application Configuration
    app_name: str = "clinic-scheduler"
    """Application name."""

    host: str = "0.0.0.0"
    """Host to bind the application server."""

    port: int = 8000
    """Port to bind the application server."""

    # Pydantic configuration
    model_config = SettingsConfigDict(
        env_file=".env",  # Load from .env file if it exists
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow DOCTOR_NAME or doctor_name
        extra="ignore",  # Ignore extra environment variables
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def tz(self) -> ZoneInfo:
        """Configured clinic time zone."""
        return ZoneInfo(self.clinic_timezone)

    @property
    def calendar_configured(self) -> bool:
        """Check whether all Google OAuth values are present."""
        return bool(
            self.google_client_id
            and self.google_client_secret
            and self.google_refresh_token
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and reused
    across the application.

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from app.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.doctor_name)
        Dr Rishabh
    """
    return Settings()


# Module-level settings instance for easy imports
settings = get_settings()
