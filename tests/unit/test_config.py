from __future__ import annotations

import logging

import pytest

from src.livecast.config import DEFAULT_API_BASE, load_config

ENV_NAMES = [
    "STREAM_ACCOUNT_ID",
    "STREAM_API_TOKEN",
    "STREAM_API_BASE",
    "CUSTOMER_SUBDOMAIN",
    "STREAM_REQUIRE_SIGNED_URLS",
    "READINESS_POLL_INTERVAL_SECONDS",
    "READINESS_MAX_ATTEMPTS",
    "CORS_ORIGINS",
    "LIVE_FLUSH_GRACE_SECONDS",
    "LIVE_RECORDING_MODE",
    "CAPTION_LANGUAGE",
    "STREAM_HTTP_TIMEOUT_SECONDS",
    "UPLOAD_ALLOWED_ORIGINS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        config = load_config()

    assert config.account.account_id == ""
    assert config.account.is_configured is False
    assert config.account.api_base == DEFAULT_API_BASE
    assert config.account.customer_subdomain is None
    assert config.account.require_signed_playback is True
    assert config.readiness.interval_seconds == 5.0
    assert config.readiness.max_attempts == 12
    assert config.readiness.caption_language == "en"
    assert config.live.flush_grace_seconds == 0.5
    assert tuple(config.cors_origins) == ("*",)
    assert "config.stream_credentials_missing" in caplog.text


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("STREAM_ACCOUNT_ID", " acc-1 ")
    monkeypatch.setenv("STREAM_API_TOKEN", "token-1")
    monkeypatch.setenv("STREAM_API_BASE", "https://api.example.test/v4/")
    monkeypatch.setenv("CUSTOMER_SUBDOMAIN", "cust.example")
    monkeypatch.setenv("STREAM_REQUIRE_SIGNED_URLS", "false")
    monkeypatch.setenv("READINESS_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")

    config = load_config()

    assert config.account.account_id == "acc-1"
    assert config.account.is_configured is True
    assert config.account.api_base == "https://api.example.test/v4"
    assert config.account.customer_subdomain == "cust.example"
    assert config.account.require_signed_playback is False
    assert config.readiness.max_attempts == 3
    assert tuple(config.cors_origins) == ("https://a.example", "https://b.example")


def test_unknown_boolean_keeps_default(monkeypatch) -> None:
    monkeypatch.setenv("STREAM_REQUIRE_SIGNED_URLS", "maybe")

    assert load_config().account.require_signed_playback is True
