"""Shared test fixtures for toolguard."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from toolguard.alerts import AlertDispatcher
from toolguard.config import ToolguardSettings
from toolguard.engine import ResilienceEngine
from toolguard.models import Handler
from toolguard.store import HealthStore


@pytest.fixture(autouse=True)
def clear_toolguard_env(monkeypatch):
    """Keep the host environment out of settings."""
    for name in (
        "DATA_DIR",
        "N8N_ALERT_WEBHOOK_URL",
        "PUBLIC_URL",
        "TOOLGUARD_DATA_DIR",
        "TOOLGUARD_HEALTH_FILE_NAME",
        "TOOLGUARD_ALERT_WEBHOOK_URL",
        "TOOLGUARD_SERVER_URL",
        "TOOLGUARD_FAILURE_THRESHOLD",
        "TOOLGUARD_ALERT_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path) -> ToolguardSettings:
    return ToolguardSettings(data_dir=str(tmp_path / "data"))


@pytest.fixture
def store(settings) -> HealthStore:
    return HealthStore.from_settings(settings)


@pytest.fixture
def dispatcher() -> MagicMock:
    """Dispatcher double recording notify() calls."""
    return MagicMock(spec=AlertDispatcher)


@pytest.fixture
def engine(settings, store, dispatcher) -> ResilienceEngine:
    return ResilienceEngine(settings, store=store, dispatcher=dispatcher)


class ScriptedHandler:
    """Handler fn that fails or succeeds according to a script.

    ``outcomes`` is consumed one entry per call; an ``Exception`` instance is
    raised, anything else is returned. The last entry repeats.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list = []

    async def __call__(self, args):
        self.calls.append(args)
        outcome = self.outcomes[0] if len(self.outcomes) == 1 else self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def make_handler():
    """Factory: ``make_handler(name, *outcomes) -> (Handler, ScriptedHandler)``."""

    def _make(name: str, *outcomes) -> tuple[Handler, ScriptedHandler]:
        fn = ScriptedHandler(*outcomes)
        return Handler(name, fn), fn

    return _make
