# tests/unit/test_settings.py

from datetime import timedelta

import pytest

from src.infrastructure.settings import DEFAULT_HOLD_TTL_SECONDS, load_settings


def test_default_hold_ttl_is_five_minutes(monkeypatch):
    monkeypatch.delenv("HOLD_TTL_SECONDS", raising=False)

    settings = load_settings()

    assert settings.hold_ttl_seconds == DEFAULT_HOLD_TTL_SECONDS
    assert settings.hold_ttl == timedelta(minutes=5)


def test_hold_ttl_from_environment(monkeypatch):
    monkeypatch.setenv("HOLD_TTL_SECONDS", "10")

    assert load_settings().hold_ttl == timedelta(seconds=10)


@pytest.mark.parametrize("raw", ["0", "-5", "ten"])
def test_invalid_hold_ttl_fails_fast(monkeypatch, raw):
    monkeypatch.setenv("HOLD_TTL_SECONDS", raw)

    with pytest.raises(ValueError):
        load_settings()


def test_log_level_is_normalized(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert load_settings().log_level == "DEBUG"
