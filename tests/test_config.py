"""
Tests for Configuration
=======================

- Defaults for Device Farm and logging settings
- Environment variable overrides
- Validation of poll interval and optional upload timeout
"""

import pytest
from pydantic import ValidationError

from devicefarm_runner.config import DeviceFarmSettings, LoggingSettings, Settings, get_settings


class TestDeviceFarmSettings:
    def test_defaults(self, monkeypatch):
        for var in ("AWS_REGION", "UPLOAD_POLL_INTERVAL", "UPLOAD_TIMEOUT", "DEFAULT_JOB_TIMEOUT_MINUTES"):
            monkeypatch.delenv(var, raising=False)
        s = DeviceFarmSettings()
        assert s.aws_region == "us-west-2"
        assert s.upload_poll_interval == 5.0
        assert s.upload_timeout is None
        assert s.default_job_timeout_minutes == 60

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_POLL_INTERVAL", "2.5")
        monkeypatch.setenv("UPLOAD_TIMEOUT", "600")
        monkeypatch.setenv("AWS_ROLE_ARN", "arn:aws:iam::123456789012:role/ci")
        s = DeviceFarmSettings()
        assert s.upload_poll_interval == 2.5
        assert s.upload_timeout == 600.0
        assert s.aws_role_arn == "arn:aws:iam::123456789012:role/ci"

    def test_empty_timeout_is_none(self, monkeypatch):
        monkeypatch.setenv("UPLOAD_TIMEOUT", "")
        assert DeviceFarmSettings().upload_timeout is None

    @pytest.mark.parametrize("interval", [0, -1])
    def test_rejects_non_positive_interval(self, interval):
        with pytest.raises(ValidationError):
            DeviceFarmSettings(upload_poll_interval=interval)


class TestLoggingSettings:
    def test_level_validated(self):
        with pytest.raises(ValidationError):
            LoggingSettings(log_level="CHATTY")


class TestSettings:
    def test_nested_sections(self):
        s = Settings()
        assert isinstance(s.device_farm, DeviceFarmSettings)
        assert isinstance(s.logging, LoggingSettings)

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()
