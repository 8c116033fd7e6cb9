"""Durable handler-health store backed by a single JSON file.

There is no cache: every read goes to disk and every mutation re-reads the
file, replaces one record and writes the whole mapping back. A missing or
corrupt file reads as "all handlers healthy". Write failures are logged and
never raised to the caller.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from toolguard.config import DEFAULT_FAILURE_THRESHOLD, ToolguardSettings
from toolguard.models import HandlerHealth, HandlerKey, HealthState

logger = logging.getLogger(__name__)


class HealthStore:
    """Load/save the HealthState for all tools."""

    def __init__(
        self,
        path: str | Path,
        *,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.path = Path(path)
        self.failure_threshold = failure_threshold
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: ToolguardSettings) -> HealthStore:
        return cls(settings.health_file, failure_threshold=settings.failure_threshold)

    # ------------------------------------------------------------------
    # Raw persistence
    # ------------------------------------------------------------------

    def load(self) -> HealthState:
        """Read the persisted state. Never raises."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read health file %s: %s", self.path, exc)
            return {}

        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("Corrupt health file %s, treating all handlers as healthy: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Health file %s is not a JSON object, ignoring it", self.path)
            return {}

        state: HealthState = {}
        for key, record in data.items():
            try:
                state[key] = HandlerHealth.model_validate(record)
            except ValidationError as exc:
                logger.warning("Dropping malformed health record %s: %s", key, exc.errors()[:1])
        return state

    def save(self, state: HealthState) -> bool:
        """Write the full state atomically. Returns False if the write failed."""
        payload = {key: state[key].to_record() for key in sorted(state)}
        tmp_path: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Failed to persist health state to %s: %s", self.path, exc)
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            return False
        return True

    @staticmethod
    def get(state: HealthState, key: HandlerKey) -> HandlerHealth:
        """Return the stored record, or the default healthy record if absent."""
        return state.get(key.storage_key) or HandlerHealth()

    # ------------------------------------------------------------------
    # Single-record mutations (re-read, replace, write back)
    # ------------------------------------------------------------------

    def record_success(self, key: HandlerKey) -> HandlerHealth:
        """Fully rehabilitate a handler. Returns the record it replaced."""
        with self._lock:
            state = self.load()
            previous = self.get(state, key)
            state[key.storage_key] = HandlerHealth()
            self.save(state)
        return previous

    def record_failure(
        self, key: HandlerKey, error: str, now: datetime | None = None
    ) -> tuple[HandlerHealth, HandlerHealth]:
        """Count one more failure. Returns ``(before, after)``."""
        with self._lock:
            state = self.load()
            before = self.get(state, key)
            after = before.with_failure(error, self.failure_threshold, now)
            state[key.storage_key] = after
            self.save(state)
        return before, after

    def reset(self, key: HandlerKey) -> None:
        """Return a handler to the default healthy state."""
        with self._lock:
            state = self.load()
            state[key.storage_key] = HandlerHealth()
            self.save(state)

    def snapshot(self, tool_name: str | None = None) -> HealthState:
        """Current state, optionally limited to one tool's handlers."""
        state = self.load()
        if tool_name is None:
            return state
        prefix = f"{tool_name}:"
        return {key: health for key, health in state.items() if key.startswith(prefix)}
