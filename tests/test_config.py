"""Tests for environment-driven settings (core/config.py)."""

import pytest

from core.config import DEFAULT_BASE_URL, Settings


def test_defaults_when_environment_is_empty():
    settings = Settings.from_env({})

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.username == ""
    assert settings.port == 3000
    assert settings.timeout_seconds == 30.0
    assert settings.verify_tls is True
    assert settings.log_level == "INFO"


def test_values_are_read_from_environment():
    settings = Settings.from_env({
        "VEEAM_BASE": "https://vbr.local:9419/",
        "VEEAM_USER": "svc-mcp",
        "VEEAM_PASS": "hunter2",
        "VEEAM_TIMEOUT": "12.5",
        "VEEAM_VERIFY_TLS": "false",
        "HOST": "127.0.0.1",
        "PORT": "8080",
        "LOG_LEVEL": "debug",
    })

    assert settings.port == 8080
    assert settings.host == "127.0.0.1"
    assert settings.timeout_seconds == 12.5
    assert settings.verify_tls is False
    assert settings.log_level == "DEBUG"
    assert settings.credential.base_url == "https://vbr.local:9419"
    assert settings.credential.username == "svc-mcp"


def test_password_stays_out_of_repr():
    settings = Settings.from_env({"VEEAM_PASS": "hunter2"})

    assert "hunter2" not in repr(settings)
    assert "hunter2" not in repr(settings.credential)


@pytest.mark.parametrize("env", [{"PORT": "http"}, {"PORT": "70000"}, {"VEEAM_TIMEOUT": "0"}, {"VEEAM_TIMEOUT": "soon"}])
def test_invalid_numbers_are_rejected(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)
