"""
Tests for environment-driven gateway settings.
"""
import pytest

from humancode_client import ClientConfig
from settings import Settings


def test_defaults_from_empty_environment():
    s = Settings.from_env({})
    assert s.port == 3000
    assert s.debug is False
    assert s.callback_url == "http://localhost:3000/verify"
    assert s.cors_origins == ("*",)


def test_reads_environment():
    s = Settings.from_env({
        "PORT": "8081",
        "BASE_URL": "https://hc.example",
        "DEBUG": "TRUE",
        "APP_ID": "id",
        "APP_KEY": "key",
        "CALLBACK_URL": "http://me/verify",
        "HTTP_TIMEOUT": "2.5",
        "CORS_ORIGINS": "http://a, http://b,",
    })
    assert s.port == 8081
    assert s.debug is True
    assert s.cors_origins == ("http://a", "http://b")
    assert s.client_config() == ClientConfig(
        base_url="https://hc.example", app_id="id", app_key="key", debug=True, timeout=2.5,
    )


@pytest.mark.parametrize("value", ["1", "yes", "false", ""])
def test_only_true_enables_debug(value):
    assert Settings.from_env({"DEBUG": value}).debug is False


def test_bad_port_raises():
    with pytest.raises(ValueError):
        Settings.from_env({"PORT": "http"})


def test_app_key_hidden_from_repr():
    assert "s3cret" not in repr(Settings.from_env({"APP_KEY": "s3cret"}))
