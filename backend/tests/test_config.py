"""
Tests for centralized configuration.
"""
import pytest
from filesense.core import config
from filesense.core.config import Settings, get_settings, reload_settings


def test_settings_defaults():
    """Test that settings have sensible defaults."""
    settings = Settings()

    assert settings.openrouter_api_key is None
    assert settings.openrouter_base_url == "https://openrouter.ai/api/v1"
    assert settings.openrouter_model == "google/gemini-2.0-flash-001"
    assert settings.default_language == "Español"
    assert settings.sample_row_count == 5
    assert settings.max_file_size_mb == 50
    assert settings.rate_limit_per_minute == 10
    assert settings.request_timeout_seconds == 300
    assert settings.log_level == "INFO"
    assert settings.log_format == "text"


def test_settings_from_env(monkeypatch):
    """Test loading settings from environment variables."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-123")
    monkeypatch.setenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("MAX_FILE_SIZE_MB", "100")
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "20")
    monkeypatch.setenv("SAMPLE_ROW_COUNT", "3")
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    monkeypatch.setattr(config, "_settings", None)

    settings = get_settings()

    assert settings.openrouter_api_key == "sk-or-123"
    assert settings.has_api_key
    assert settings.openrouter_model == "openai/gpt-4o-mini"
    assert settings.max_file_size_mb == 100
    assert settings.rate_limit_per_minute == 20
    assert settings.sample_row_count == 3
    assert settings.log_format == "json"


def test_blank_api_key_is_unset(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "   ")

    settings = Settings.from_env()

    assert settings.openrouter_api_key is None
    assert not settings.has_api_key


def test_settings_validation():
    """Test that settings validate input ranges."""
    with pytest.raises(ValueError):
        Settings(max_file_size_mb=0)  # Below minimum

    with pytest.raises(ValueError):
        Settings(max_file_size_mb=2000)  # Above maximum

    with pytest.raises(ValueError):
        Settings(log_level="INVALID")

    with pytest.raises(ValueError):
        Settings(log_format="xml")

    with pytest.raises(ValueError):
        Settings(sample_row_count=0)


def test_settings_properties():
    """Test computed properties."""
    settings = Settings(max_file_size_mb=50, allowed_origins=" https://a.test , ,https://b.test")

    assert settings.max_file_size_bytes == 50 * 1024 * 1024
    assert settings.allowed_origins_list == ["https://a.test", "https://b.test"]


def test_settings_singleton(monkeypatch):
    """Test that get_settings returns singleton."""
    monkeypatch.setattr(config, "_settings", None)

    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2

    assert reload_settings() is not settings1
