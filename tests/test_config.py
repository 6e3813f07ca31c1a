"""Tests for environment configuration."""

import pytest

from nearswap.config import DEFAULT_API_URL, SwapConfig

ENV_VARS = ["NEAR_SWAP_API_URL", "NEAR_SWAP_JWT_TOKEN", "NEAR_SWAP_HTTP_TIMEOUT", "TRANSPORT", "LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = SwapConfig.from_env()

    assert config.base_url == DEFAULT_API_URL == "https://1click.chaindefuser.com"
    assert config.jwt_token == ""
    assert not config.has_token
    assert config.http_timeout is None
    assert config.transport == "stdio"
    assert config.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("NEAR_SWAP_API_URL", "https://staging.example.com/")
    monkeypatch.setenv("NEAR_SWAP_JWT_TOKEN", "secret")
    monkeypatch.setenv("NEAR_SWAP_HTTP_TIMEOUT", "12.5")
    monkeypatch.setenv("TRANSPORT", "SSE")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = SwapConfig.from_env()

    assert config.base_url == "https://staging.example.com"
    assert config.jwt_token == "secret"
    assert config.has_token
    assert config.http_timeout == 12.5
    assert config.transport == "sse"
    assert config.log_level == "DEBUG"


def test_empty_url_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("NEAR_SWAP_API_URL", "")

    assert SwapConfig.from_env().base_url == DEFAULT_API_URL


@pytest.mark.parametrize("raw", ["", "  ", "0", "-1"])
def test_timeout_disabled(monkeypatch, raw):
    monkeypatch.setenv("NEAR_SWAP_HTTP_TIMEOUT", raw)

    assert SwapConfig.from_env().http_timeout is None


def test_invalid_timeout(monkeypatch):
    monkeypatch.setenv("NEAR_SWAP_HTTP_TIMEOUT", "soon")

    with pytest.raises(ValueError, match="NEAR_SWAP_HTTP_TIMEOUT"):
        SwapConfig.from_env()
