import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from linkauth.core.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    settings = Settings()

    assert settings.app_name == "LinkAuth"
    assert settings.environment == "development"
    assert settings.storage_backend == "sql"
    assert settings.default_session_duration == 3600
    assert settings.default_users_quota == 100
    assert settings.min_session_duration == 60
    assert settings.send_retries == 3
    assert settings.sweep_interval_seconds == 1800
    assert settings.email_provider == "console"
    assert settings.is_development is True
    assert settings.is_production is False


def test_settings_env_override():
    """Test that environment variables override defaults."""
    with patch.dict(os.environ, {
        "LINKAUTH_ENVIRONMENT": "production",
        "LINKAUTH_STORAGE_BACKEND": "redis",
        "LINKAUTH_REDIS_URL": "redis://cache:6379/2",
        "LINKAUTH_DEFAULT_USERS_QUOTA": "5",
        "LINKAUTH_SEND_RETRIES": "4",
    }):
        settings = Settings()

        assert settings.is_production is True
        assert settings.storage_backend == "redis"
        assert settings.redis_url == "redis://cache:6379/2"
        assert settings.default_users_quota == 5
        assert settings.send_retries == 4


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()


def test_unknown_storage_backend_rejected():
    with patch.dict(os.environ, {"LINKAUTH_STORAGE_BACKEND": "mongo"}):
        with pytest.raises(ValidationError):
            Settings()


def test_smtp_provider_requires_host():
    with patch.dict(os.environ, {"LINKAUTH_EMAIL_PROVIDER": "smtp"}):
        with pytest.raises(ValidationError) as exc_info:
            Settings()
        assert "LINKAUTH_SMTP_HOST" in str(exc_info.value)


def test_smtp_provider_requires_valid_sender():
    with patch.dict(os.environ, {
        "LINKAUTH_EMAIL_PROVIDER": "smtp",
        "LINKAUTH_SMTP_HOST": "smtp.example.com",
        "LINKAUTH_EMAIL_FROM_ADDRESS": "not-an-address",
    }):
        with pytest.raises(ValidationError):
            Settings()


def test_smtp_provider_valid():
    with patch.dict(os.environ, {
        "LINKAUTH_EMAIL_PROVIDER": "smtp",
        "LINKAUTH_SMTP_HOST": "smtp.example.com",
        "LINKAUTH_EMAIL_FROM_ADDRESS": "  auth@example.com ",
    }):
        settings = Settings()
        assert settings.email_from_address == "auth@example.com"


def test_default_duration_below_floor_rejected():
    with pytest.raises(ValidationError):
        Settings(default_session_duration=30, min_session_duration=60)


def test_send_retries_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(send_retries=0)
