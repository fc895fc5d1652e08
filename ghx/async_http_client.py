"""
Async Secure HTTP Client

Thin httpx wrapper used by the GraphQL client for every call to GitHub.

Usage:
    from ghx.async_http_client import AsyncSecureHTTPClient

    async with AsyncSecureHTTPClient(timeout=30) as client:
        response = await client.post(api_url, headers=auth_header, json={"query": "..."})

Guarantees:
    - TLS verification cannot be turned off
    - Every request carries a timeout and the ghx User-Agent
    - Pool size covers the largest bulk worker count
    - HTTP/2 multiplexing when the server supports it
"""

import httpx

from ghx import __version__

USER_AGENT = f"ghx/{__version__}"

DEFAULT_HEADERS = {
    "Accept": "application/vnd.github+json",
    "User-Agent": USER_AGENT,
}


class AsyncSecureHTTPClient:
    """
    Async HTTP client scoped to one ``async with`` block.

    Args:
        timeout: Per-request timeout in seconds
        max_connections: Upper bound on open connections
        max_keepalive_connections: Idle connections kept for reuse
        http2: Negotiate HTTP/2
        transport: Replacement transport (tests use httpx.MockTransport)
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_CONNECTIONS = 64
    DEFAULT_MAX_KEEPALIVE = 16

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        max_keepalive_connections: int = DEFAULT_MAX_KEEPALIVE,
        http2: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.limits = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_keepalive_connections)
        self.http2 = http2
        self.transport = transport
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncSecureHTTPClient":
        self.client = httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            limits=self.limits,
            timeout=httpx.Timeout(self.timeout),
            verify=True,
            http2=self.http2,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def post(self, url: str, **kwargs) -> httpx.Response:
        """
        POST inside the open session.

        Args:
            url: Endpoint URL (must be https unless a test transport is installed)
            **kwargs: Passed to httpx.AsyncClient.post (headers, json, timeout)

        Raises:
            RuntimeError: If called outside ``async with``
            ValueError: If the URL is not https on a real transport
        """
        if self.client is None:
            raise RuntimeError("Client not initialized. Use 'async with AsyncSecureHTTPClient()' context manager")
        if self.transport is None and not url.startswith("https://"):
            raise ValueError(f"Refusing non-HTTPS request to {url}")

        kwargs.setdefault("timeout", self.timeout)
        return await self.client.post(url, **kwargs)
