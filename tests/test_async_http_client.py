"""
Tests for AsyncSecureHTTPClient
"""

import httpx
import pytest

from ghx.async_http_client import USER_AGENT, AsyncSecureHTTPClient

API_URL = "https://api.github.com/graphql"


def _echo_transport(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"ok": True}})

    return httpx.MockTransport(handler)


class TestAsyncSecureHTTPClient:
    """Tests for the async client wrapper"""

    @pytest.mark.asyncio
    async def test_post_sends_default_headers(self):
        seen: list[httpx.Request] = []

        async with AsyncSecureHTTPClient(transport=_echo_transport(seen)) as client:
            response = await client.post(API_URL, headers={"Authorization": "Bearer t"}, json={"query": "{ viewer }"})

        assert response.json() == {"data": {"ok": True}}
        assert seen[0].headers["User-Agent"] == USER_AGENT
        assert seen[0].headers["Authorization"] == "Bearer t"
        assert seen[0].headers["Accept"] == "application/vnd.github+json"

    @pytest.mark.asyncio
    async def test_client_closed_on_exit(self):
        wrapper = AsyncSecureHTTPClient(transport=_echo_transport([]))

        async with wrapper:
            assert wrapper.client is not None

        assert wrapper.client is None

    @pytest.mark.asyncio
    async def test_post_outside_context(self):
        with pytest.raises(RuntimeError, match="context manager"):
            await AsyncSecureHTTPClient().post(API_URL)

    @pytest.mark.asyncio
    async def test_plain_http_rejected(self):
        async with AsyncSecureHTTPClient(http2=False) as client:
            with pytest.raises(ValueError, match="non-HTTPS"):
                await client.post("http://api.github.com/graphql")

    def test_limits(self):
        wrapper = AsyncSecureHTTPClient(timeout=5, max_connections=8, max_keepalive_connections=2)

        assert wrapper.timeout == 5
        assert wrapper.limits.max_connections == 8
        assert wrapper.limits.max_keepalive_connections == 2
