"""Ordered-fallback execution over a tool's handler chain.

Handlers are tried strictly in order, one at a time, until one succeeds:

- If every handler is degraded the tool is disabled: nothing is attempted and
  no counter changes.
- A degraded handler is skipped while a later handler exists. The last handler
  is always attempted, so a degraded handler can heal itself by succeeding.
- A success resets the handler's record and ends the call.
- A failure is counted and the next handler is tried. Crossing the failure
  threshold marks the handler degraded and fires exactly one alert.

Skip decisions use one health snapshot taken at the start of the call; each
attempt's outcome is written to the store as soon as it is known. Store file
I/O runs in a worker thread so it does not block the event loop.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Sequence

from pydantic import BaseModel

from toolguard.alerts import AlertDispatcher
from toolguard.models import Handler, HandlerKey, ToolResult
from toolguard.store import HealthStore

logger = logging.getLogger(__name__)


def error_message(exc: BaseException) -> str:
    """Human-readable message for a handler failure."""
    return str(exc) or type(exc).__name__


def render_output(output: Any) -> str:
    """Render a handler result as text (strings pass through unchanged)."""
    if isinstance(output, str):
        return output
    if isinstance(output, BaseModel):
        output = output.model_dump(mode="json")
    return json.dumps(output, indent=2, default=str)


async def invoke(handler: Handler, args: Any) -> Any:
    result = handler.fn(args)
    if inspect.isawaitable(result):
        result = await result
    return result


class FallbackExecutor:
    """Runs one tool call against its fallback chain."""

    def __init__(self, store: HealthStore, dispatcher: AlertDispatcher) -> None:
        self.store = store
        self.dispatcher = dispatcher

    async def run(self, tool_name: str, handlers: Sequence[Handler], args: Any) -> ToolResult:
        state = await asyncio.to_thread(self.store.load)
        degraded = [
            self.store.get(state, HandlerKey(tool_name, h.name)).degraded for h in handlers
        ]

        if all(degraded):
            logger.warning(
                "Tool %s disabled: all %d handlers degraded", tool_name, len(handlers)
            )
            return ToolResult.disabled(tool_name)

        attempted: list[str] = []
        skipped: list[str] = []
        last_error = ""
        last_index = len(handlers) - 1

        for index, handler in enumerate(handlers):
            key = HandlerKey(tool_name, handler.name)

            if degraded[index] and index < last_index:
                logger.debug("Skipping degraded handler %s", key)
                skipped.append(handler.name)
                continue

            attempted.append(handler.name)
            try:
                # Output that cannot be rendered counts as a handler failure
                text = render_output(await invoke(handler, args))
            except Exception as exc:
                last_error = error_message(exc)
                await self._record_failure(key, last_error)
                continue

            previous = await asyncio.to_thread(self.store.record_success, key)
            if previous.degraded:
                logger.info("Handler %s recovered after %d failures", key, previous.failure_count)
            return ToolResult.success(
                tool_name,
                handler.name,
                text,
                attempted=attempted,
                skipped=skipped,
            )

        logger.warning("Tool %s failed on all attempted handlers %s: %s", tool_name, attempted, last_error)
        return ToolResult.failed(tool_name, last_error, attempted=attempted, skipped=skipped)

    async def _record_failure(self, key: HandlerKey, error: str) -> None:
        before, after = await asyncio.to_thread(self.store.record_failure, key, error)
        if after.degraded and not before.degraded:
            logger.warning(
                "Handler %s degraded after %d consecutive failures: %s",
                key,
                after.failure_count,
                error,
            )
            self.dispatcher.notify(key.storage_key, error, after.failure_count)
        else:
            logger.info(
                "Handler %s failed (%d/%d): %s",
                key,
                after.failure_count,
                self.store.failure_threshold,
                error,
            )
