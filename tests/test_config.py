"""Tests for environment-driven settings."""

import pytest

from minifinder.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MINIFINDER_TCP_PORT", raising=False)
    settings = Settings(_env_file=None)
    assert settings.TCP_PORT == 5039
    assert settings.MAX_FRAME_LENGTH == 1024
    assert settings.DEVICE_TIME_ZONE is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MINIFINDER_TCP_PORT", "6000")
    monkeypatch.setenv("MINIFINDER_REGISTER_UNKNOWN_DEVICES", "false")
    monkeypatch.setenv("MINIFINDER_DEVICE_TIME_ZONE", "Europe/Stockholm")
    settings = Settings(_env_file=None)
    assert settings.TCP_PORT == 6000
    assert settings.REGISTER_UNKNOWN_DEVICES is False
    assert settings.DEVICE_TIME_ZONE == "Europe/Stockholm"
