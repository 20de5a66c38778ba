"""HTTP client for the management console API.

Implements:
- Token authentication with the console API key, refreshed once on 401
- Exponential backoff with jitter on rate limits (429) and server errors (5xx),
  with a fresh retry schedule for every request
- A single shared httpx.AsyncClient per process
"""

import asyncio
import logging
from typing import Any

import httpx

from sbomscan.consts import (
    CONSOLE_API_PREFIX,
    CONSOLE_AUTH_PATH,
    CONSOLE_REQUEST_TIMEOUT,
    DEFAULT_CONSOLE_PORT,
)
from sbomscan.exceptions import ConfigurationError, PublisherError
from sbomscan.models.model_request import ServiceConfig
from sbomscan.publisher.retry import RetryPolicy

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class ConsoleClient:
    """Authenticated JSON client for the console."""

    def __init__(
        self,
        console_url: str,
        console_port: str = DEFAULT_CONSOLE_PORT,
        api_key: str = "",
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize ConsoleClient.

        Args:
            console_url: Console host name or IP
            console_port: Console HTTPS port (default: "443")
            api_key: Console API key exchanged for an access token
            retry_policy: Retries for 429 / 5xx / transport errors (default: RetryPolicy())
            transport: Custom httpx transport (used by tests)
        """
        if not console_url:
            raise ConfigurationError("Management console URL is not set")
        self.base_url = f"https://{console_url}:{console_port or DEFAULT_CONSOLE_PORT}{CONSOLE_API_PREFIX}"
        self.api_key = api_key
        self.retry_policy = retry_policy or RetryPolicy()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._access_token: str | None = None
        self._auth_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: ServiceConfig, **kwargs) -> "ConsoleClient":
        return cls(
            console_url=config.console_url,
            console_port=config.console_port,
            api_key=config.deepfence_key,
            **kwargs,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(CONSOLE_REQUEST_TIMEOUT),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def _authenticate(self, force: bool = False) -> str:
        async with self._auth_lock:
            if self._access_token and not force:
                return self._access_token

            client = await self._get_client()
            try:
                response = await client.post(CONSOLE_AUTH_PATH, json={"api_token": self.api_key})
            except httpx.TransportError as e:
                raise PublisherError(f"Console authentication failed: {e}", endpoint=CONSOLE_AUTH_PATH) from e
            if response.status_code != 200:
                raise PublisherError(
                    f"Console authentication failed ({response.status_code}): {response.text}",
                    status_code=response.status_code,
                    endpoint=CONSOLE_AUTH_PATH,
                )
            token = response.json().get("access_token")
            if not token:
                raise PublisherError("Console returned no access token", endpoint=CONSOLE_AUTH_PATH)
            self._access_token = token
            return token

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        content: bytes | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated request, retrying transient failures.

        Args:
            method: HTTP method
            path: Path relative to the console API prefix
            json: JSON body
            content: Raw body (sent as application/json)
            params: Query parameters

        Returns:
            Decoded JSON response, or None for an empty body

        Raises:
            PublisherError: On non-retryable errors or when retries are exhausted
        """
        client = await self._get_client()
        token = await self._authenticate()
        refreshed = False
        delays = self.retry_policy.delays()

        while True:
            headers = {"Authorization": f"Bearer {token}"}
            if content is not None:
                headers["Content-Type"] = "application/json"
            try:
                response = await client.request(
                    method, path, json=json, content=content, params=params, headers=headers
                )
            except httpx.TransportError as e:
                delay = next(delays, None)
                if delay is None:
                    raise PublisherError(f"{method} {path} failed: {e}", endpoint=path) from e
                logger.warning(f"Console unreachable ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            if response.status_code == 401 and not refreshed:
                refreshed = True
                token = await self._authenticate(force=True)
                continue

            if response.status_code in RETRYABLE_STATUS:
                delay = next(delays, None)
                if delay is not None:
                    logger.warning(f"Console returned {response.status_code}, retrying in {delay:.1f}s")
                    await asyncio.sleep(delay)
                    continue

            if response.status_code >= 400:
                raise PublisherError(
                    f"{method} {path} failed ({response.status_code}): {response.text}",
                    status_code=response.status_code,
                    endpoint=path,
                )

            if not response.content:
                return None
            return response.json()

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
