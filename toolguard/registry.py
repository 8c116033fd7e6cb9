"""Named fallback chains bound to an engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from toolguard.exceptions import DuplicateHandlerError
from toolguard.models import Handler, HandlerFn, ToolResult

if TYPE_CHECKING:
    from toolguard.engine import ResilienceEngine

logger = logging.getLogger(__name__)


def validate_handlers(tool_name: str, handlers: Iterable[Handler]) -> tuple[Handler, ...]:
    """Check a fallback chain is non-empty with unique handler names."""
    chain = tuple(handlers)
    if not tool_name:
        raise ValueError("tool_name is required")
    if not chain:
        raise ValueError(f"Tool {tool_name!r} needs at least one handler")
    seen: set[str] = set()
    for handler in chain:
        if not handler.name:
            raise ValueError(f"Tool {tool_name!r} has a handler without a name")
        if handler.name in seen:
            raise DuplicateHandlerError(tool_name, handler.name)
        seen.add(handler.name)
    return chain


class ResilientTool:
    """A tool with a fixed fallback chain; call it like the handlers it wraps.

    Example::

        search = engine.with_resilience("search", [
            Handler("api", search_api),
            Handler("scrape", scrape_results),
        ])
        result = await search({"q": "python"})
    """

    def __init__(
        self,
        engine: ResilienceEngine,
        tool_name: str,
        handlers: Sequence[Handler],
    ) -> None:
        self.engine = engine
        self.tool_name = tool_name
        self.handlers = validate_handlers(tool_name, handlers)

    @property
    def handler_names(self) -> list[str]:
        return [h.name for h in self.handlers]

    def add_fallback(self, name: str, fn: HandlerFn) -> ResilientTool:
        """Append a handler at the end of the chain (lowest preference)."""
        self.handlers = validate_handlers(self.tool_name, (*self.handlers, Handler(name, fn)))
        return self

    async def __call__(self, args: Any = None) -> ToolResult:
        return await self.engine.execute_with_resilience(self.tool_name, self.handlers, args)

    def reset(self, handler_name: str | None = None) -> None:
        """Reset one handler, or every handler in the chain."""
        names = [handler_name] if handler_name else self.handler_names
        for name in names:
            self.engine.reset_handler(self.tool_name, name)

    def __repr__(self) -> str:
        return f"ResilientTool({self.tool_name!r}, handlers={self.handler_names})"
