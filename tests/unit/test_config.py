"""
Unit tests for environment-driven settings.
"""

from __future__ import annotations

import pytest

from skynest.config import DEV_JWT_SECRET, load_settings


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's local .env out of these tests."""
    monkeypatch.setattr("skynest.config.load_dotenv", lambda: None)


@pytest.mark.unit
def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/skynest")
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.test, https://b.test,")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("SESSION_TTL_DAYS", "3")

    settings = load_settings()

    assert settings.database_url == "postgresql://u:p@db:5432/skynest"
    assert settings.jwt_secret == "s3cret"
    assert settings.allowed_origins == ["https://a.test", "https://b.test"]
    assert settings.log_level == "DEBUG"
    assert settings.debug
    assert settings.session_ttl_days == 3


@pytest.mark.unit
def test_development_falls_back_to_dev_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "development")

    assert load_settings().jwt_secret == DEV_JWT_SECRET


@pytest.mark.unit
def test_production_requires_jwt_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that production refuses to start with the development secret."""
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "production")

    with pytest.raises(ValueError, match="JWT_SECRET"):
        load_settings()
