"""OAuth 2.0 access-token refresh with an explicit expiring cache.

``TokenProvider`` exchanges a long-lived refresh token for short-lived access
tokens and keeps the current one in an ``AccessTokenCache`` it owns. A cached
token is reused until five minutes before it expires.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import httpx
from pydantic import BaseModel, Field

from toolguard.exceptions import TokenRefreshError
from toolguard.shaping import parse_response

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
EXPIRY_SKEW = timedelta(minutes=5)


class TokenResponse(BaseModel):
    access_token: str = Field(min_length=1)
    expires_in: int = Field(gt=0)


@dataclass(frozen=True)
class AccessTokenCache:
    token: str
    expires_at: datetime

    def is_valid(self, now: datetime | None = None, skew: timedelta = EXPIRY_SKEW) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.expires_at - skew > now


class TokenProvider:
    """Refresh-token grant client with a single cached access token."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        *,
        token_url: str = GOOGLE_TOKEN_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.token_url = token_url
        self.timeout = timeout
        self._transport = transport
        self._cache: AccessTokenCache | None = None
        self._refresh_lock = asyncio.Lock()

    @classmethod
    def from_env(cls, prefix: str = "YOUTUBE", **kwargs) -> TokenProvider:
        """Read ``<PREFIX>_CLIENT_ID``, ``_CLIENT_SECRET`` and ``_REFRESH_TOKEN``."""
        return cls(
            os.environ.get(f"{prefix}_CLIENT_ID", ""),
            os.environ.get(f"{prefix}_CLIENT_SECRET", ""),
            os.environ.get(f"{prefix}_REFRESH_TOKEN", ""),
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    @property
    def cache(self) -> AccessTokenCache | None:
        return self._cache

    def invalidate(self) -> None:
        self._cache = None

    async def get_token(self) -> str:
        """Return a valid access token, refreshing it if needed.

        Concurrent callers share a single refresh request.
        """
        async with self._refresh_lock:
            now = datetime.now(timezone.utc)
            if self._cache is not None and self._cache.is_valid(now):
                return self._cache.token
            return await self._refresh(now)

    async def _refresh(self, now: datetime) -> str:
        if not self.configured:
            raise TokenRefreshError(
                "OAuth credentials not configured: client_id, client_secret "
                "and refresh_token are all required"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.token_url,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
        except httpx.HTTPError as exc:
            raise TokenRefreshError(f"Token refresh request failed: {exc}") from exc

        if resp.is_error:
            raise TokenRefreshError(
                f"Token refresh failed ({resp.status_code}): {resp.text[:500]}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise TokenRefreshError("Token endpoint returned invalid JSON") from exc

        data = parse_response(TokenResponse, body)
        self._cache = AccessTokenCache(
            token=data.access_token,
            expires_at=now + timedelta(seconds=data.expires_in),
        )
        logger.info("Refreshed access token (expires in %ds)", data.expires_in)
        return self._cache.token
