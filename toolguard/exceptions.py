"""toolguard exception hierarchy.

All toolguard exceptions inherit from ``ToolguardError`` so callers can use a
blanket ``except ToolguardError``. Handler failures are never wrapped in these
types: whatever a handler raises is recorded as-is by the executor.
"""

from __future__ import annotations

from typing import Any


class ToolguardError(Exception):
    """Base exception for all toolguard failures."""

    __slots__ = ()


class DuplicateHandlerError(ToolguardError):
    """Raised when a fallback chain names the same handler twice."""

    __slots__ = ("handler_name", "tool_name")

    def __init__(self, tool_name: str, handler_name: str) -> None:
        super().__init__(
            f"Tool {tool_name!r} lists handler {handler_name!r} more than once"
        )
        self.tool_name = tool_name
        self.handler_name = handler_name


class UnexpectedShapeError(ToolguardError):
    """Raised when an external response does not match its declared schema.

    Attributes
    ----------
    schema_name : str
        Name of the model the response was validated against.
    errors : list[dict[str, Any]]
        Field-level validation errors (``loc``, ``msg``, ``type``).
    """

    __slots__ = ("errors", "schema_name")

    def __init__(self, schema_name: str, errors: list[dict[str, Any]]) -> None:
        n = len(errors)
        first = errors[0].get("msg", "") if errors else ""
        detail = f": {first}" if first else ""
        super().__init__(
            f"Unexpected {schema_name} response shape "
            f"({n} violation{'s' if n != 1 else ''}){detail}"
        )
        self.schema_name = schema_name
        self.errors = errors


class TokenRefreshError(ToolguardError):
    """Raised when an OAuth access token cannot be obtained."""

    __slots__ = ("status_code",)

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
