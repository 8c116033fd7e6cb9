"""toolguard: resilient execution of tools with ordered fallback handlers.

Public API:
    - ResilienceEngine       - facade: execute_with_resilience / reset_handler
    - ResilientTool          - a fallback chain bound to an engine
    - Handler                - one named implementation of a tool
    - ToolResult             - uniform result envelope (success / disabled / failed)
    - HandlerHealth          - persisted consecutive-failure record
    - HealthStore            - JSON-file health persistence
    - AlertDispatcher        - fire-and-forget degradation webhook
    - ToolguardSettings      - environment-driven configuration
    - ToolguardError         - base exception for blanket catch
    - trim_response / parse_response - optional response shaping for handlers
    - TokenProvider          - optional OAuth refresh-token helper for handlers
"""

from __future__ import annotations

from toolguard.alerts import AlertDispatcher, AlertPayload
from toolguard.config import ToolguardSettings, get_settings
from toolguard.engine import ResilienceEngine
from toolguard.exceptions import (
    DuplicateHandlerError,
    TokenRefreshError,
    ToolguardError,
    UnexpectedShapeError,
)
from toolguard.executor import FallbackExecutor
from toolguard.models import (
    DISABLED_MARKER,
    ERROR_MARKER,
    Handler,
    HandlerHealth,
    HandlerKey,
    HealthState,
    Outcome,
    ToolResult,
)
from toolguard.registry import ResilientTool
from toolguard.shaping import parse_response, trim_response
from toolguard.store import HealthStore
from toolguard.tokens import AccessTokenCache, TokenProvider

__all__ = [
    "DISABLED_MARKER",
    "ERROR_MARKER",
    "AccessTokenCache",
    "AlertDispatcher",
    "AlertPayload",
    "DuplicateHandlerError",
    "FallbackExecutor",
    "Handler",
    "HandlerHealth",
    "HandlerKey",
    "HealthState",
    "HealthStore",
    "Outcome",
    "ResilienceEngine",
    "ResilientTool",
    "TokenProvider",
    "TokenRefreshError",
    "ToolResult",
    "ToolguardError",
    "ToolguardSettings",
    "UnexpectedShapeError",
    "get_settings",
    "parse_response",
    "trim_response",
]
