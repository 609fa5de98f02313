"""
MMW — Configuration Tests
==========================
Validates:
- Defaults and ``MMW_`` environment overrides
- Admin email list parsing (comma-separated and JSON)
- Immutable job configuration derived from settings
"""

from __future__ import annotations

import dataclasses

import pytest
from pydantic import ValidationError

from mmw.core.config import (
    Environment,
    NotificationConfig,
    QualityMonitorConfig,
    Settings,
    get_settings,
)


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.environment is Environment.DEVELOPMENT
        assert settings.quality_monitor_cron == "0 * * * *"
        assert settings.quality_report_cron == "0 2 * * *"
        assert settings.quality_monitor_detection_window_hours == 24
        assert settings.notification_fail_rate_threshold == 5.0
        assert settings.notification_admin_emails == []

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MMW_QUALITY_MONITOR_CRON", "0 0 * * * ?")
        monkeypatch.setenv("MMW_QUALITY_MONITOR_ENABLED", "false")
        settings = Settings(_env_file=None)
        assert settings.quality_monitor_cron == "0 0 * * * ?"
        assert settings.quality_monitor_enabled is False

    def test_comma_separated_admin_emails(self, monkeypatch):
        monkeypatch.setenv(
            "MMW_NOTIFICATION_ADMIN_EMAILS", "a@example.com, b@example.com,,"
        )
        settings = Settings(_env_file=None)
        assert settings.notification_admin_emails == ["a@example.com", "b@example.com"]

    def test_json_admin_emails(self, monkeypatch):
        monkeypatch.setenv("MMW_NOTIFICATION_ADMIN_EMAILS", '["a@example.com"]')
        settings = Settings(_env_file=None)
        assert settings.notification_admin_emails == ["a@example.com"]

    def test_invalid_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("MMW_LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestJobConfig:
    def test_notification_config_from_settings(self, monkeypatch):
        monkeypatch.setenv("MMW_NOTIFICATION_ADMIN_EMAILS", "a@example.com")
        monkeypatch.setenv("MMW_NOTIFICATION_FAIL_RATE_THRESHOLD", "7.5")
        config = NotificationConfig.from_settings(Settings(_env_file=None))
        assert config.admin_emails == ("a@example.com",)
        assert config.fail_rate_threshold == 7.5

    def test_monitor_config_from_settings(self, monkeypatch):
        monkeypatch.setenv("MMW_QUALITY_REPORT_ENABLED", "false")
        monkeypatch.setenv("MMW_QUALITY_MONITOR_DETECTION_WINDOW_HOURS", "6")
        config = QualityMonitorConfig.from_settings(Settings(_env_file=None))
        assert config.report_enabled is False
        assert config.detection_window_hours == 6
        assert config.report_timezone == "Asia/Shanghai"

    def test_configs_are_frozen(self):
        config = NotificationConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.fail_rate_threshold = 1.0
