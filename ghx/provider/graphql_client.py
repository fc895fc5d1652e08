"""
GitHub GraphQL API Client

Posts GraphQL documents to GitHub through AsyncSecureHTTPClient
(HTTP/2, connection pooling, SSL enforcement) and maps transport and GraphQL
failures onto the ghx error taxonomy.

Usage:
    from ghx.provider.graphql_client import get_github_graphql_client

    client = get_github_graphql_client()
    data = await client.execute(GET_PROJECT_QUERY, {"owner": "octo-org", "number": 5})

API Documentation:
    https://docs.github.com/en/graphql
"""

import asyncio
import time
from typing import Any

import httpx

from ghx import __version__
from ghx.async_http_client import AsyncSecureHTTPClient
from ghx.core import get_logger
from ghx.core.request_metrics import get_current_tracker
from ghx.domain.constants import api_config
from ghx.errors import (
    AccessDeniedError,
    AuthenticationError,
    NotFoundError,
    RemoteMutationError,
    RemoteUnavailableError,
)
from ghx.secure_config import DEFAULT_API_URL, get_config
from ghx.utils.error_handling import log_and_continue

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = (500, 502, 503, 504)


class GitHubGraphQLClient:
    """
    GitHub GraphQL API client.

    Features:
    - Bearer token authentication
    - Retry logic for rate limiting, server errors and network errors
    - GraphQL error classification (NOT_FOUND, FORBIDDEN, ...)
    - API usage recorded on the active RequestMetricsTracker
    """

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL, timeout: float = 30.0):
        """
        Initialize GitHub GraphQL client.

        Args:
            token: Personal access token
            api_url: GraphQL endpoint
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If token or api_url is empty
        """
        if not token or not api_url:
            raise ValueError("token and api_url are required")

        self.api_url = api_url
        self.token = token
        self.timeout = timeout
        self.auth_header = self._build_auth_header(token)

    def _build_auth_header(self, token: str) -> dict[str, str]:
        """
        Build request headers for the GraphQL endpoint.

        Returns:
            Dictionary with Authorization, Content-Type and User-Agent headers
        """
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"ghx/{__version__}",
        }

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        max_retries: int = api_config.MAX_RETRIES,
    ) -> dict[str, Any]:
        """
        Execute a GraphQL query or mutation.

        Args:
            query: GraphQL document
            variables: Variables for the document
            max_retries: Attempts for transient failures (use 1 for mutations)

        Returns:
            The "data" member of the response

        Raises:
            AuthenticationError: Token rejected (HTTP 401)
            AccessDeniedError: Permission denied (HTTP 403 or FORBIDDEN)
            NotFoundError: Resource not found (HTTP 404 or NOT_FOUND)
            RemoteMutationError: Other GraphQL errors or non-retryable HTTP errors
            RemoteUnavailableError: Transient failures persisted through every attempt
        """
        payload = {"query": query, "variables": variables or {}}
        response_json = await self._handle_api_call(payload, max_retries=max_retries)

        errors = response_json.get("errors")
        if errors:
            self._raise_for_graphql_errors(errors)

        return response_json.get("data") or {}

    async def _handle_api_call(self, payload: dict[str, Any], max_retries: int) -> dict[str, Any]:
        """
        POST a GraphQL payload with retry logic and error handling.

        Handles:
        - Rate limiting (429, or 403 with exhausted quota) waiting for Retry-After
        - Server errors (500, 502, 503, 504) with exponential backoff
        - Network errors with exponential backoff
        - Malformed (non-JSON) bodies, treated like a transient server error
        - Authentication errors (401) and permission errors (403) fail fast

        Returns:
            Parsed JSON response
        """
        last_error: Exception | None = None
        tracker = get_current_tracker()

        for attempt in range(max_retries):
            has_next_attempt = attempt + 1 < max_retries
            try:
                if tracker:
                    tracker.record_api_call()

                async with AsyncSecureHTTPClient(timeout=self.timeout) as client:
                    response = await client.post(self.api_url, headers=self.auth_header, json=payload)
                    response.raise_for_status()

                try:
                    return self._decode_body(response)
                except ValueError as e:
                    last_error = e
                    if has_next_attempt:
                        if tracker:
                            tracker.record_retry()
                        backoff = 2**attempt
                        logger.warning(
                            f"Malformed response body (HTTP {response.status_code}), retrying in {backoff}s "
                            f"(attempt {attempt + 1}/{max_retries})"
                        )
                        await asyncio.sleep(backoff)
                    continue

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code

                if status_code == 401:
                    logger.error("Authentication failed (HTTP 401)")
                    raise AuthenticationError("GitHub rejected the token (HTTP 401)") from e

                if self._is_rate_limited(e.response):
                    if tracker:
                        tracker.record_rate_limit_hit()

                    last_error = e
                    if has_next_attempt:
                        retry_after = self._retry_after_seconds(e.response)
                        logger.warning(
                            f"Rate limited, retrying after {retry_after}s (attempt {attempt + 1}/{max_retries})"
                        )
                        await asyncio.sleep(retry_after)
                    continue

                if status_code == 403:
                    logger.error(f"Access denied (HTTP 403): {e.response.text}")
                    raise AccessDeniedError(f"GitHub denied access (HTTP 403): {e.response.text}") from e

                if status_code == 404:
                    raise NotFoundError(f"GitHub endpoint not found (HTTP 404): {self.api_url}") from e

                if status_code in RETRYABLE_STATUS_CODES:
                    last_error = e
                    if has_next_attempt:
                        if tracker:
                            tracker.record_retry()
                        backoff = 2**attempt  # Exponential backoff: 1s, 2s, 4s
                        logger.warning(
                            f"Server error (HTTP {status_code}), retrying in {backoff}s "
                            f"(attempt {attempt + 1}/{max_retries})"
                        )
                        await asyncio.sleep(backoff)
                    continue

                logger.error(f"HTTP error {status_code}: {e.response.text}")
                raise RemoteMutationError(f"GitHub returned HTTP {status_code}") from e

            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_error = e
                if has_next_attempt:
                    if tracker:
                        tracker.record_retry()
                    backoff = 2**attempt
                    logger.warning(f"Network error, retrying in {backoff}s (attempt {attempt + 1}/{max_retries}): {e}")
                    await asyncio.sleep(backoff)
                continue

        # All retries exhausted
        if last_error:
            log_and_continue(logger, last_error, {"url": self.api_url, "max_retries": max_retries}, "GitHub API call")
            raise RemoteUnavailableError(
                f"GitHub API unavailable after {max_retries} attempt(s): {last_error}"
            ) from last_error

        raise RuntimeError("Unexpected: No error but retries exhausted")

    @staticmethod
    def _decode_body(response: httpx.Response) -> dict[str, Any]:
        """
        Parse a GraphQL response body.

        Proxies and load balancers occasionally answer 200 with an HTML page;
        anything that is not a JSON object raises ValueError.
        """
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"expected a JSON object, got {type(body).__name__}")
        return body

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code == 403:
            headers = response.headers
            return headers.get("x-ratelimit-remaining") == "0" or "retry-after" in {k.lower() for k in headers}
        return False

    @staticmethod
    def _retry_after_seconds(response: httpx.Response) -> int:
        """Seconds to wait before retrying a rate-limited request (capped)."""
        headers = {k.lower(): v for k, v in response.headers.items()}
        wait = api_config.DEFAULT_RETRY_AFTER_SECONDS

        if "retry-after" in headers:
            try:
                wait = int(headers["retry-after"])
            except ValueError:
                pass
        elif "x-ratelimit-reset" in headers:
            try:
                wait = max(int(headers["x-ratelimit-reset"]) - int(time.time()), 1)
            except ValueError:
                pass

        return min(wait, api_config.MAX_RETRY_AFTER_SECONDS)

    @staticmethod
    def _raise_for_graphql_errors(errors: list[dict[str, Any]]) -> None:
        """Map GraphQL error entries onto the error taxonomy."""
        messages = "; ".join(str(error.get("message", "unknown error")) for error in errors)
        types = {str(error.get("type", "")).upper() for error in errors}

        if "NOT_FOUND" in types:
            raise NotFoundError(messages)
        if types & {"FORBIDDEN", "INSUFFICIENT_SCOPES"}:
            raise AccessDeniedError(messages)
        if "RATE_LIMITED" in types:
            raise RemoteUnavailableError(f"GitHub rate limit exceeded: {messages}")
        raise RemoteMutationError(messages, errors)


def get_github_graphql_client() -> GitHubGraphQLClient:
    """
    Get GitHub GraphQL client with credentials from config.

    Returns:
        GitHubGraphQLClient: Authenticated client

    Raises:
        ConfigurationError: If GITHUB_TOKEN is missing or invalid
    """
    github_config = get_config().get_github_config()
    return GitHubGraphQLClient(
        token=github_config.token,
        api_url=github_config.api_url,
        timeout=github_config.request_timeout,
    )
