"""Unit tests for the runtime settings."""

import pytest

from weaver_ai.core.config import LogfireConfig, Settings, get_settings, reset_settings


class TestSettingsDefaults:
    """Test default values when no environment is set."""

    def test_defaults(self, monkeypatch):
        for name in ("WEAVER_AI_LOG_LEVEL", "WEAVER_AI_LOG_FORMAT", "WEAVER_AI_ENABLE_FILE_LOGGING"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.log_format == "detailed"
        assert settings.enable_file_logging is False
        assert settings.instrumentation_enabled is False
        assert settings.logfire_token is None


class TestSettingsEnvironment:
    """Test binding from environment variables."""

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("false", False), ("0", False)])
    def test_instrumentation_toggle(self, monkeypatch, raw, expected):
        monkeypatch.setenv("WEAVER_AI_INSTRUMENTATION_ENABLED", raw)
        assert Settings(_env_file=None).instrumentation_enabled is expected

    def test_logfire_group(self, monkeypatch):
        monkeypatch.setenv("LOGFIRE_TOKEN", "secret")
        monkeypatch.setenv("LOGFIRE_SERVICE_NAME", "svc")
        monkeypatch.setenv("LOGFIRE_SAMPLE_RATE", "0.5")

        cfg = Settings(_env_file=None).logfire

        assert isinstance(cfg, LogfireConfig)
        assert cfg.token == "secret"
        assert cfg.service_name == "svc"
        assert cfg.sample_rate == 0.5

    def test_field_names_are_accepted(self):
        settings = Settings(_env_file=None, log_level="DEBUG", instrumentation_enabled=True)
        assert settings.log_level == "DEBUG"
        assert settings.instrumentation_enabled is True


class TestGetSettings:
    """Test the cached settings accessor."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reset_settings_rereads_environment(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("WEAVER_AI_LOG_LEVEL", "ERROR")
        assert get_settings().log_level == first.log_level

        reset_settings()

        assert get_settings().log_level == "ERROR"
