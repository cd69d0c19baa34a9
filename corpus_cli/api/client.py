"""
Async HTTP client for fetching index pages, feeds, and package archives.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from corpus_cli.exceptions import FetchError

log = logging.getLogger(__name__)


class HttpClient:
    """
    Thin wrapper around one shared aiohttp session with retry and backoff.

    Use as an async context manager so the session is always closed.
    """

    def __init__(
        self,
        max_connections: int = 20,
        max_attempts: int = 3,
        base_delay: float = 1.5,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Args:
            max_connections: Connection pool size; should match the pool's concurrency.
            max_attempts: Total tries per request before giving up.
            base_delay: First backoff delay in seconds, doubled on each retry.
            session: An existing session to use instead of creating one.
        """
        self.max_connections = max_connections
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers={"Accept-Encoding": "gzip, deflate"},
            )
            log.debug(f"Created HTTP session with limit={self.max_connections}")
        return self._session

    async def _request(
        self, url: str, read: Callable[[aiohttp.ClientResponse], Awaitable[Any]]
    ) -> Any:
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await self._get_session()
                async with session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    return await read(response)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"GET attempt {attempt}/{self.max_attempts} for '{url}' "
                    f"failed: {e}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise FetchError(
            f"Could not fetch '{url}' after {self.max_attempts} attempts: "
            f"{last_exception}"
        ) from last_exception

    async def get_text(self, url: str) -> str:
        """Gets the decoded body of the response to a GET of `url`."""
        return await self._request(url, lambda response: response.text())

    async def get_bytes(self, url: str) -> bytes:
        """Gets the raw body of the response to a GET of `url`."""
        return await self._request(url, lambda response: response.read())

    async def get_json(self, url: str) -> Any:
        """Gets the body of the response to a GET of `url`, decoded as JSON."""
        return await self._request(
            url, lambda response: response.json(content_type=None)
        )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            log.debug("HTTP session closed.")
        self._session = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
