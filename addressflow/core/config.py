"""Application configuration."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Address verification settings.

    Environment variables will be loaded and validated using Pydantic.
    Durations are expressed in seconds.
    """

    app_name: str = "addressflow"
    version: str = "0.1.0"

    # Address defaults
    DEFAULT_COUNTRY: str = "PL"

    # Scheduling
    DEBOUNCE_SECONDS: float = Field(default=0.35, ge=0.0)
    QUEUE_CONCURRENCY: int = Field(default=2, ge=1)
    LATENCY_BUDGET_SECONDS: float = Field(default=1.2, ge=0.1)

    # Quota backoff
    RETRY_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    RETRY_BASE_DELAY: float = Field(default=0.5, ge=0.0)
    RETRY_JITTER: float = Field(default=0.2, ge=0.0)

    # Session state
    GEOCODE_CACHE_MAX_ENTRIES: int = Field(
        default=0, ge=0
    )  # 0 keeps every result for the session lifetime
    UNDO_CAPACITY: int = Field(default=50, ge=1)

    # Geocoding provider
    GEOCODING_PROVIDER: Literal["nominatim", "none"] = "nominatim"
    GEOCODING_TIMEOUT: int = 10
    NOMINATIM_USER_AGENT: str = "addressflow"
    NOMINATIM_DOMAIN: str | None = None

    # TES long-running suggestion operations
    TES_BASE_URL: str | None = None
    TES_POLL_INTERVAL: float = Field(default=2.0, gt=0.0)
    TES_POLL_MAX_ATTEMPTS: int = Field(default=15, ge=1)
    TES_REQUEST_TIMEOUT: float = 10.0

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @field_validator("DEFAULT_COUNTRY")
    @classmethod
    def uppercase_country(cls, value: str) -> str:
        """Store the default country as an upper-case code."""
        value = value.strip().upper()
        if not value:
            raise ValueError("DEFAULT_COUNTRY must not be empty")
        return value


# Create settings instance
settings = Settings()
