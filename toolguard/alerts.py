"""Degradation alerts posted to a webhook (n8n or any HTTP endpoint).

Delivery is fire-and-forget: ``notify`` schedules the POST and returns
immediately. Transport errors and non-2xx responses are logged and dropped,
never retried and never raised. With no webhook URL configured, ``notify`` is
a no-op.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from toolguard.config import ToolguardSettings

logger = logging.getLogger(__name__)


class AlertPayload(BaseModel):
    """JSON body POSTed to the alert webhook."""

    model_config = ConfigDict(populate_by_name=True)

    tool: str
    error: str
    failure_count: int = Field(alias="failureCount")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    server_url: str = Field(default="", alias="serverUrl")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class AlertDispatcher:
    """Best-effort webhook notifier for handler degradation."""

    def __init__(
        self,
        webhook_url: str = "",
        *,
        server_url: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.server_url = server_url
        self.timeout = timeout
        self._transport = transport
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: ToolguardSettings) -> AlertDispatcher:
        return cls(
            settings.alert_webhook_url,
            server_url=settings.server_url,
            timeout=settings.alert_timeout,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def notify(self, tool: str, error: str, failure_count: int) -> None:
        """Schedule an alert for ``tool`` without waiting for delivery."""
        if not self.enabled:
            logger.debug("Alerting disabled, not reporting %s", tool)
            return

        payload = AlertPayload(
            tool=tool,
            error=error,
            failure_count=failure_count,
            server_url=self.server_url,
        )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called from synchronous code: deliver on a daemon thread
            threading.Thread(
                target=asyncio.run,
                args=(self.send(payload),),
                name=f"toolguard-alert-{tool}",
                daemon=True,
            ).start()
            return

        task = loop.create_task(self.send(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, payload: AlertPayload) -> bool:
        """POST one alert. Returns whether the webhook accepted it."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.webhook_url, json=payload.to_json())
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Failed to deliver degradation alert for %s: %s", payload.tool, exc)
            return False
        except Exception:
            logger.exception("Unexpected error delivering degradation alert for %s", payload.tool)
            return False

        logger.info("Degradation alert sent for %s (%d failures)", payload.tool, payload.failure_count)
        return True

    async def drain(self) -> None:
        """Wait for every scheduled alert to finish."""
        while self._pending:
            batch = list(self._pending)
            await asyncio.gather(*batch, return_exceptions=True)
            self._pending.difference_update(batch)
