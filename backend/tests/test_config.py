"""
Tests for application configuration and settings validation.
"""

import os
import pytest
from unittest.mock import patch

from dashboard.config import Settings, get_settings


def test_settings_loads_defaults():
    """Settings should load with sensible defaults in development."""
    with patch.dict(os.environ, {"ENVIRONMENT": "development"}, clear=False):
        get_settings.cache_clear()
        settings = get_settings()
        assert settings.environment == "development"
        assert settings.is_production is False
        assert settings.llm_model == "openai:gpt-4o"
        assert settings.session_cookie_name == "app_session_id"
    get_settings.cache_clear()


def test_plain_postgres_url_uses_asyncpg():
    settings = Settings(database_url="postgresql://user:pw@db-host:5432/dashboard")
    assert settings.database_url == "postgresql+asyncpg://user:pw@db-host:5432/dashboard"


def test_settings_cors_origin_list():
    """CORS origins string should be split into a list."""
    settings = Settings(cors_origins="http://localhost:3000, http://example.com,")
    assert settings.cors_origin_list == ["http://localhost:3000", "http://example.com"]


def test_production_rejects_default_secret():
    """Production mode should reject the default secret key."""
    with pytest.raises(ValueError, match="SECRET_KEY must be set"):
        Settings(
            environment="production",
            secret_key="change-me-in-production",
            encryption_key="x" * 44,
            database_url="postgresql+asyncpg://prod-host/db",
        )


def test_production_requires_encryption_key():
    with pytest.raises(ValueError, match="ENCRYPTION_KEY must be set"):
        Settings(
            environment="production",
            secret_key="a-real-secret-key-that-is-not-the-default",
            encryption_key="",
            database_url="postgresql+asyncpg://prod-host/db",
        )


def test_production_accepts_real_secrets():
    """Production mode should accept a real secret key."""
    settings = Settings(
        environment="production",
        secret_key="a-real-secret-key-that-is-not-the-default",
        encryption_key="x" * 44,
        database_url="postgresql+asyncpg://prod-host/db",
    )
    assert settings.is_production is True
    assert settings.secret_key == "a-real-secret-key-that-is-not-the-default"
