"""Tests for toolguard.config - environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from toolguard.config import ToolguardSettings, get_settings


def test_defaults() -> None:
    settings = ToolguardSettings()
    assert settings.data_dir == "/data"
    assert settings.health_file == Path("/data/tool-health.json")
    assert settings.failure_threshold == 3
    assert settings.alert_webhook_url == ""
    assert not settings.alerting_enabled


def test_legacy_environment_names(monkeypatch) -> None:
    monkeypatch.setenv("DATA_DIR", "/srv/state")
    monkeypatch.setenv("N8N_ALERT_WEBHOOK_URL", "https://n8n.example/hook")
    monkeypatch.setenv("PUBLIC_URL", "https://tools.example")

    settings = ToolguardSettings()

    assert settings.health_file == Path("/srv/state/tool-health.json")
    assert settings.alerting_enabled
    assert settings.server_url == "https://tools.example"


def test_prefixed_names_win(monkeypatch) -> None:
    monkeypatch.setenv("DATA_DIR", "/legacy")
    monkeypatch.setenv("TOOLGUARD_DATA_DIR", "/preferred")
    monkeypatch.setenv("TOOLGUARD_FAILURE_THRESHOLD", "5")

    settings = ToolguardSettings()

    assert settings.data_dir == "/preferred"
    assert settings.failure_threshold == 5


def test_threshold_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        ToolguardSettings(failure_threshold=0)


def test_get_settings_overrides(tmp_path) -> None:
    settings = get_settings(data_dir=str(tmp_path), health_file_name="health.json")
    assert settings.health_file == tmp_path / "health.json"
