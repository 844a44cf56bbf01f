"""Tests for environment-based settings."""

import pytest
from pydantic import ValidationError

from feedback_sync.alerts.config import AlertConfig, NotifierConfig
from feedback_sync.config.settings import Settings, get_settings


class TestSettings:
    """Tests for the central Settings model."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FEEDBACK_STORE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.feedback_store == "postgres"
        assert settings.api_port == 8080
        assert settings.request_timeout_seconds == 30.0
        assert settings.tracing_enabled is False
        assert not settings.is_production

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("FEEDBACK_STORE", "memory")
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("API_PORT", "9090")

        settings = Settings(_env_file=None)

        assert settings.feedback_store == "memory"
        assert settings.is_production
        assert settings.api_port == 9090

    def test_invalid_store(self):
        with pytest.raises(ValidationError):
            Settings(feedback_store="sqlite")

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()


class TestComponentConfigs:
    """Prefixed component settings."""

    def test_alert_prefix(self, monkeypatch):
        monkeypatch.setenv("ALERTS_MAX_DELIVERY_ATTEMPTS", "7")
        assert AlertConfig(_env_file=None).max_delivery_attempts == 7

    def test_alert_bounds(self):
        with pytest.raises(ValidationError):
            AlertConfig(max_delivery_attempts=0)

    def test_notifier_prefix(self, monkeypatch):
        monkeypatch.setenv("NOTIFIER_SENDGRID_API_KEY", "SG.env")
        monkeypatch.setenv("NOTIFIER_ADMIN_EMAIL", "admin@example.com")

        config = NotifierConfig(_env_file=None)

        assert config.sendgrid_configured
        assert config.subject == "ALERT: Critical feedback received"
