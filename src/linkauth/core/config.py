"""Configuration management for LinkAuth.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at startup and
is immutable during runtime.
"""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ADDRESS_PATTERN = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,}$")


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LINKAUTH_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "LinkAuth"
    environment: Literal["development", "production", "testing"] = "development"

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Storage Settings
    storage_backend: Literal["memory", "sql", "redis"] = "sql"
    database_url: str = "sqlite+aiosqlite:///./linkauth_data/linkauth.db"
    db_echo: bool = False
    redis_url: str = "redis://localhost:6379/0"
    storage_timeout_seconds: float = Field(default=5.0, gt=0)

    # Token Policy Settings
    default_session_duration: int = 3600  # 1 hour
    default_users_quota: int = Field(default=100, ge=1)
    min_session_duration: int = Field(default=60, ge=1)
    sweep_interval_seconds: float = Field(default=1800.0, gt=0)  # 30 minutes

    # Delivery Settings
    email_provider: Literal["smtp", "console"] = "console"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: int = 10
    email_from_address: str = "noreply@localhost.local"
    email_from_name: str = "LinkAuth"
    send_retries: int = Field(default=3, ge=1)
    queue_poll_interval_seconds: float = Field(default=1.0, gt=0)
    disposable_domains_source: str | None = Field(
        default=None,
        description="URL or local path of a newline separated disposable domain list",
    )
    user_email_template_path: str | None = None
    app_email_template_path: str | None = None

    @field_validator("email_from_address")
    @classmethod
    def normalize_from_address(cls, v: str) -> str:
        """Strip surrounding whitespace from the sender address."""
        return v.strip()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @model_validator(mode="after")
    def validate_smtp_provider(self) -> "Settings":
        """Validate that the SMTP provider has a server and a sender address."""
        if self.email_provider != "smtp":
            return self
        if not self.smtp_host:
            raise ValueError("The smtp email provider requires LINKAUTH_SMTP_HOST to be set.")
        if not _ADDRESS_PATTERN.match(self.email_from_address):
            raise ValueError(
                f"Invalid sender address '{self.email_from_address}' for the smtp email provider."
            )
        return self

    @model_validator(mode="after")
    def validate_default_duration(self) -> "Settings":
        """Validate that the default session duration respects the floor."""
        if self.default_session_duration < self.min_session_duration:
            raise ValueError(
                "default_session_duration must be at least "
                f"{self.min_session_duration} seconds."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
