"""
HTTP client utilities for talking to the content provider.
"""

import asyncio
from typing import Any

import aiohttp


class AsyncHTTPClient:
    """Async HTTP client for provider requests."""

    def __init__(self, timeout: int = 30, headers: dict[str, str] | None = None) -> None:
        """Initialize HTTP client."""
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = headers
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        self.session = aiohttp.ClientSession(timeout=self.timeout, headers=self.headers)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self.session:
            await self.session.close()

    @staticmethod
    async def _prepare_request(coro_or_ctx: Any) -> Any:
        """Normalize aiohttp request result to an async context manager."""
        if asyncio.iscoroutine(coro_or_ctx):
            return await coro_or_ctx
        return coro_or_ctx

    @staticmethod
    async def _ensure_response_ok(response: Any) -> None:
        """Invoke raise_for_status, awaiting when necessary."""
        result = response.raise_for_status()
        if asyncio.iscoroutine(result):
            await result

    def _require_session(self) -> aiohttp.ClientSession:
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")
        return self.session

    async def get(
        self,
        url: str,
        headers: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Perform GET request and decode the JSON body."""
        session = self._require_session()

        request_ctx = await self._prepare_request(
            session.get(url, headers=headers, params=params)
        )
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json()

    async def get_text(
        self,
        url: str,
        headers: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> str:
        """Perform GET request and return the raw body as text."""
        session = self._require_session()

        request_ctx = await self._prepare_request(
            session.get(url, headers=headers, params=params)
        )
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.text()
