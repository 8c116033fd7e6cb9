"""Public entry point: run a tool through its fallback chain.

``ResilienceEngine`` owns the health store, the alert dispatcher and the
executor. Expected failures never raise out of ``execute_with_resilience``;
callers always get a renderable ``ToolResult``:

- success:   the handler's output as text
- disabled:  ``[DISABLED] ...`` when every handler is degraded
- failed:    ``[ERROR] ...`` with the last attempted handler's error
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from toolguard.alerts import AlertDispatcher
from toolguard.config import ToolguardSettings, get_settings
from toolguard.executor import FallbackExecutor
from toolguard.models import Handler, HandlerHealth, HandlerKey, ToolResult
from toolguard.registry import ResilientTool
from toolguard.store import HealthStore

logger = logging.getLogger(__name__)


class ResilienceEngine:
    """Resilient execution facade."""

    def __init__(
        self,
        settings: ToolguardSettings | None = None,
        *,
        store: HealthStore | None = None,
        dispatcher: AlertDispatcher | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store or HealthStore.from_settings(self.settings)
        self.dispatcher = dispatcher or AlertDispatcher.from_settings(self.settings)
        self._executor = FallbackExecutor(self.store, self.dispatcher)

    async def execute_with_resilience(
        self,
        tool_name: str,
        handlers: Sequence[Handler],
        args: Any = None,
    ) -> ToolResult:
        """Execute ``handlers`` in preference order until one succeeds."""
        logger.debug("Executing %s with handlers %s", tool_name, [h.name for h in handlers])
        return await self._executor.run(tool_name, handlers, args)

    def with_resilience(self, tool_name: str, handlers: Sequence[Handler]) -> ResilientTool:
        """Bind a fallback chain to this engine as a reusable callable."""
        return ResilientTool(self, tool_name, handlers)

    def reset_handler(self, tool_name: str, handler_name: str) -> None:
        """Manually return a handler to the healthy state. Idempotent."""
        key = HandlerKey(tool_name, handler_name)
        self.store.reset(key)
        logger.info("Handler %s reset", key)

    def is_degraded(self, tool_name: str, handler_name: str) -> bool:
        state = self.store.load()
        return self.store.get(state, HandlerKey(tool_name, handler_name)).degraded

    def health_report(self, tool_name: str | None = None) -> dict[str, HandlerHealth]:
        """Persisted health records, optionally for a single tool."""
        return self.store.snapshot(tool_name)

    async def aclose(self) -> None:
        """Wait for in-flight alerts before shutdown."""
        await self.dispatcher.drain()
