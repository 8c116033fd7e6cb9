"""Tests for toolguard.tokens - OAuth refresh with an expiring cache."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from toolguard.exceptions import TokenRefreshError, UnexpectedShapeError
from toolguard.tokens import AccessTokenCache, TokenProvider

TOKEN_URL = "https://oauth.example/token"


class TokenEndpoint:
    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.forms: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.forms.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return self.responses.pop(0)


def _provider(endpoint: TokenEndpoint, **kwargs) -> TokenProvider:
    return TokenProvider(
        "client-id",
        "client-secret",
        "refresh-me",
        token_url=TOKEN_URL,
        transport=httpx.MockTransport(endpoint),
        **kwargs,
    )


class TestAccessTokenCache:
    def test_valid_until_skew(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        cache = AccessTokenCache("t", now + timedelta(minutes=10))
        assert cache.is_valid(now)
        assert not cache.is_valid(now + timedelta(minutes=5))
        assert not cache.is_valid(now + timedelta(minutes=11))


class TestTokenProvider:
    @pytest.mark.asyncio
    async def test_refresh_and_cache(self) -> None:
        endpoint = TokenEndpoint(httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600}))
        provider = _provider(endpoint)

        assert await provider.get_token() == "tok-1"
        assert await provider.get_token() == "tok-1"

        assert len(endpoint.forms) == 1
        assert endpoint.forms[0] == {
            "client_id": "client-id",
            "client_secret": "client-secret",
            "refresh_token": "refresh-me",
            "grant_type": "refresh_token",
        }
        assert provider.cache is not None
        assert provider.cache.token == "tok-1"

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self) -> None:
        endpoint = TokenEndpoint(httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600}))
        provider = _provider(endpoint)

        tokens = await asyncio.gather(*(provider.get_token() for _ in range(5)))

        assert tokens == ["tok-1"] * 5
        assert len(endpoint.forms) == 1

    @pytest.mark.asyncio
    async def test_short_lived_token_refreshed_each_time(self) -> None:
        endpoint = TokenEndpoint(
            httpx.Response(200, json={"access_token": "tok-1", "expires_in": 60}),
            httpx.Response(200, json={"access_token": "tok-2", "expires_in": 60}),
        )
        provider = _provider(endpoint)

        assert await provider.get_token() == "tok-1"
        assert await provider.get_token() == "tok-2"

    @pytest.mark.asyncio
    async def test_invalidate_forces_refresh(self) -> None:
        endpoint = TokenEndpoint(
            httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600}),
            httpx.Response(200, json={"access_token": "tok-2", "expires_in": 3600}),
        )
        provider = _provider(endpoint)
        await provider.get_token()
        provider.invalidate()
        assert await provider.get_token() == "tok-2"

    @pytest.mark.asyncio
    async def test_missing_credentials(self) -> None:
        provider = TokenProvider("", "", "")
        assert not provider.configured
        with pytest.raises(TokenRefreshError, match="not configured"):
            await provider.get_token()

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        endpoint = TokenEndpoint(httpx.Response(400, text='{"error": "invalid_grant"}'))
        with pytest.raises(TokenRefreshError) as exc_info:
            await _provider(endpoint).get_token()
        assert exc_info.value.status_code == 400
        assert "invalid_grant" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unexpected_body(self) -> None:
        endpoint = TokenEndpoint(httpx.Response(200, json={"token": "wrong-field"}))
        with pytest.raises(UnexpectedShapeError):
            await _provider(endpoint).get_token()

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        endpoint = TokenEndpoint(httpx.Response(200, text="<html>"))
        with pytest.raises(TokenRefreshError, match="invalid JSON"):
            await _provider(endpoint).get_token()

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = TokenProvider(
            "id", "secret", "refresh", token_url=TOKEN_URL, transport=httpx.MockTransport(refuse)
        )
        with pytest.raises(TokenRefreshError, match="request failed"):
            await provider.get_token()

    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("YOUTUBE_CLIENT_ID", "cid")
        monkeypatch.setenv("YOUTUBE_CLIENT_SECRET", "secret")
        monkeypatch.setenv("YOUTUBE_REFRESH_TOKEN", "refresh")
        provider = TokenProvider.from_env()
        assert provider.configured
        assert provider.client_id == "cid"


def test_exported_from_package() -> None:
    import toolguard

    assert toolguard.TokenProvider is TokenProvider
    assert "trim_response" in toolguard.__all__
