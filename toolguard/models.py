"""Data model for handler health and tool results.

HandlerHealth records are persisted with the field names ``failures``,
``degraded``, ``lastError`` and ``lastFailure`` so existing health files keep
loading. Records are immutable: every transition builds a new record, so the
failure count and the degraded flag always change together.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

DISABLED_MARKER = "[DISABLED]"
ERROR_MARKER = "[ERROR]"

HandlerFn = Callable[[Any], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class HandlerKey:
    """Identity of one handler within one tool's fallback chain."""

    tool_name: str
    handler_name: str

    @property
    def storage_key(self) -> str:
        return f"{self.tool_name}:{self.handler_name}"

    @classmethod
    def parse(cls, storage_key: str) -> HandlerKey:
        tool_name, sep, handler_name = storage_key.partition(":")
        if not sep or not tool_name or not handler_name:
            raise ValueError(f"Invalid handler key: {storage_key!r}")
        return cls(tool_name, handler_name)

    def __str__(self) -> str:
        return self.storage_key


class HandlerHealth(BaseModel):
    """Consecutive-failure state of a single handler."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    failure_count: int = Field(default=0, ge=0, alias="failures")
    degraded: bool = False
    last_error: str | None = Field(default=None, alias="lastError")
    last_failure_at: datetime | None = Field(default=None, alias="lastFailure")

    @property
    def healthy(self) -> bool:
        return not self.degraded

    def with_failure(
        self, error: str, threshold: int, now: datetime | None = None
    ) -> HandlerHealth:
        """Return the record after one more consecutive failure.

        Once degraded, a record stays degraded until replaced by a success or
        a reset.
        """
        count = self.failure_count + 1
        return HandlerHealth(
            failure_count=count,
            degraded=self.degraded or count >= threshold,
            last_error=error,
            last_failure_at=now or datetime.now(timezone.utc),
        )

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


HealthState = dict[str, HandlerHealth]


@dataclass(frozen=True)
class Handler:
    """One named implementation of a tool.

    ``fn`` receives the tool arguments and either returns the result or an
    awaitable of it. Raising any exception counts as a failure.
    """

    name: str
    fn: HandlerFn


class Outcome(str, Enum):
    SUCCESS = "success"
    DISABLED = "disabled"
    FAILED = "failed"


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Uniform result envelope returned for every execution.

    ``content`` follows the MCP tool-result shape; ``attempted`` and
    ``skipped`` list handler names in the order they were considered.
    """

    content: list[TextContent]
    outcome: Outcome
    tool_name: str
    handler_name: str | None = None
    attempted: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(item.text for item in self.content)

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.SUCCESS

    def to_mcp(self) -> dict[str, Any]:
        return {"content": [item.model_dump() for item in self.content]}

    @classmethod
    def success(
        cls,
        tool_name: str,
        handler_name: str,
        text: str,
        *,
        attempted: list[str] | None = None,
        skipped: list[str] | None = None,
    ) -> ToolResult:
        return cls(
            content=[TextContent(text=text)],
            outcome=Outcome.SUCCESS,
            tool_name=tool_name,
            handler_name=handler_name,
            attempted=attempted or [],
            skipped=skipped or [],
        )

    @classmethod
    def disabled(cls, tool_name: str) -> ToolResult:
        text = (
            f'{DISABLED_MARKER} Tool "{tool_name}" is temporarily disabled: '
            "all handlers are degraded. Use reset_handler() to re-enable."
        )
        return cls(content=[TextContent(text=text)], outcome=Outcome.DISABLED, tool_name=tool_name)

    @classmethod
    def failed(
        cls,
        tool_name: str,
        error: str,
        *,
        attempted: list[str] | None = None,
        skipped: list[str] | None = None,
    ) -> ToolResult:
        return cls(
            content=[TextContent(text=f'{ERROR_MARKER} Tool "{tool_name}" failed: {error}')],
            outcome=Outcome.FAILED,
            tool_name=tool_name,
            attempted=attempted or [],
            skipped=skipped or [],
        )
