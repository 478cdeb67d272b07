"""
Configuration Tests

Tests for gemini_proxy/config.py: environment parsing, secret handling and
the configuration report.
"""

import pytest
from pydantic import ValidationError

from gemini_proxy.config import Settings, get_settings, validate_configuration


ENV_NAMES = (
    "GEMINI_API_KEY",
    "ALLOWED_ORIGINS",
    "CLIENT_TOKEN",
    "UPSTREAM_TIMEOUT_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate each test from the real environment and any .env file"""
    monkeypatch.chdir(tmp_path)
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_environment_empty():
    settings = get_settings()

    assert settings.api_key == ""
    assert settings.client_token == ""
    assert settings.allowed_origins_list == []
    assert settings.UPSTREAM_TIMEOUT_SECONDS is None
    assert settings.LOG_LEVEL == "INFO"


def test_values_read_from_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "key-123")
    monkeypatch.setenv("CLIENT_TOKEN", "token-456")
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "45")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.api_key == "key-123"
    assert settings.client_token == "token-456"
    assert settings.UPSTREAM_TIMEOUT_SECONDS == 45.0
    assert settings.LOG_LEVEL == "DEBUG"


def test_allowed_origins_parsed(monkeypatch):
    """Test that blanks and whitespace are dropped from ALLOWED_ORIGINS"""
    monkeypatch.setenv("ALLOWED_ORIGINS", " https://a.example , ,https://b.example,")

    assert get_settings().allowed_origins_list == ["https://a.example", "https://b.example"]


def test_empty_values_treated_as_unset(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("CLIENT_TOKEN", "")
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "")

    settings = get_settings()

    assert settings.api_key == ""
    assert settings.client_token == ""
    assert settings.UPSTREAM_TIMEOUT_SECONDS is None


def test_secrets_hidden_from_repr(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "super-secret-key")
    monkeypatch.setenv("CLIENT_TOKEN", "super-secret-token")

    settings = get_settings()

    assert "super-secret-key" not in repr(settings)
    assert "super-secret-token" not in repr(settings)


def test_get_settings_not_cached(monkeypatch):
    """Test that each call sees the current environment"""
    monkeypatch.setenv("GEMINI_API_KEY", "first")
    assert get_settings().api_key == "first"

    monkeypatch.setenv("GEMINI_API_KEY", "second")
    assert get_settings().api_key == "second"


def test_invalid_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, LOG_LEVEL="LOUD")


def test_validate_configuration_reports_missing_key():
    status = validate_configuration(Settings(_env_file=None))

    assert status["valid"] is False
    assert any("GEMINI_API_KEY" in error for error in status["errors"])
    assert status["client_token_required"] is False


def test_validate_configuration_passes_with_key():
    status = validate_configuration(
        Settings(
            _env_file=None,
            GEMINI_API_KEY="key",
            ALLOWED_ORIGINS="https://a.example",
            CLIENT_TOKEN="tok",
        )
    )

    assert status["valid"] is True
    assert status["warnings"] == []
    assert status["allowed_origins"] == ["https://a.example"]
