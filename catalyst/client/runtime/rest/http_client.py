"""Async HTTP client wrapper built on aiohttp."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp

from ...config import DEFAULT_TIMEOUT
from ...core.exceptions import RateLimitError, TransportError

logger = logging.getLogger(__name__)

# A hook may return a delay (seconds) to throttle the next request
ResponseHook = Callable[[aiohttp.ClientResponse], float | None | Awaitable[float | None]]

_RATE_LIMIT_STATUSES = (418, 429)
_FALLBACK_RETRY_AFTER = 1.0
_MAX_RATE_LIMIT_RETRIES = 3


class HTTPClient:
    """Async HTTP client wrapper.

    Owns a lazily created ``aiohttp.ClientSession``. Rate-limited answers
    (418/429) are retried after ``Retry-After``; every other non-2xx answer
    and every network failure becomes a ``TransportError`` carrying the URL
    and status.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = dict(headers or {})
        self._session: aiohttp.ClientSession | None = None
        self._response_hooks: list[ResponseHook] = []
        self._throttle_until: float | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout, headers=self.headers)
        return self._session

    def add_response_hook(self, hook: ResponseHook) -> None:
        self._response_hooks.append(hook)

    def set_throttle(self, delay: float) -> None:
        """Hold the next requests for ``delay`` seconds, never shortening a longer hold."""
        if delay <= 0:
            return
        until = time.time() + delay
        if self._throttle_until is None or until > self._throttle_until:
            self._throttle_until = until

    async def get(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET request returning decoded JSON."""
        return await self._request(
            "GET", url, "json", params=params, headers=headers, timeout=timeout
        )

    async def get_bytes(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bytes:
        """GET request returning the raw body."""
        return await self._request("GET", url, "bytes", headers=headers, timeout=timeout)

    async def post(
        self,
        url: str,
        json: Any = None,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """POST request returning decoded JSON."""
        return await self._request(
            "POST", url, "json", json=json, data=data, headers=headers, timeout=timeout
        )

    async def stream(
        self,
        url: str,
        write: Callable[[bytes], Awaitable[None] | None],
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        chunk_size: int = 64 * 1024,
    ) -> dict[str, str]:
        """GET request piping the body into ``write``; returns the response headers."""
        await self._wait_for_throttle()
        full_url = self._full_url(url)
        try:
            async with self.session.get(
                full_url, headers=headers, **self._timeout_kwargs(timeout)
            ) as response:
                await self._run_hooks(response)
                if response.status >= 400:
                    await self._raise_for_status(response, full_url)
                async for chunk in response.content.iter_chunked(chunk_size):
                    written = write(chunk)
                    if inspect.isawaitable(written):
                        await written
                return dict(response.headers)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Failed to fetch {full_url}: {e}", url=full_url) from e

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

    def _full_url(self, url: str) -> str:
        # If base_url is set and url is relative, combine them
        if self.base_url and not url.startswith("http"):
            return f"{self.base_url}{url}"
        return url

    def _timeout_kwargs(self, timeout: float | None) -> dict[str, Any]:
        # timeout=None would disable the session timeout
        return {"timeout": aiohttp.ClientTimeout(total=timeout)} if timeout is not None else {}

    async def _request(
        self,
        method: str,
        url: str,
        read: str,
        *,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        full_url = self._full_url(url)
        for attempt in range(_MAX_RATE_LIMIT_RETRIES + 1):
            await self._wait_for_throttle()
            requester = self.session.get if method == "GET" else self.session.post
            try:
                async with requester(
                    full_url, **self._timeout_kwargs(timeout), **kwargs
                ) as response:
                    await self._run_hooks(response)
                    if response.status in _RATE_LIMIT_STATUSES:
                        retry_after = self._retry_after(response)
                        if attempt == _MAX_RATE_LIMIT_RETRIES:
                            raise RateLimitError(
                                f"Rate limited by {full_url}", url=full_url, retry_after=retry_after
                            )
                        logger.warning(
                            "rate_limited",
                            extra={
                                "url": full_url,
                                "status": response.status,
                                "retry_after": retry_after,
                            },
                        )
                        self.set_throttle(retry_after)
                        continue
                    if response.status >= 400:
                        await self._raise_for_status(response, full_url)
                    if read == "bytes":
                        return await response.read()
                    return await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransportError(f"Failed to fetch {full_url}: {e}", url=full_url) from e
        raise RateLimitError(f"Rate limited by {full_url}", url=full_url)

    async def _raise_for_status(self, response: aiohttp.ClientResponse, url: str) -> None:
        text = await response.text()
        raise TransportError(
            f"Failed to fetch {url}. Got status {response.status}. Response was '{text}'",
            status_code=response.status,
            url=url,
        )

    def _retry_after(self, response: aiohttp.ClientResponse) -> float:
        value = response.headers.get("Retry-After") if response.headers else None
        try:
            return float(value) if value is not None else _FALLBACK_RETRY_AFTER
        except ValueError:
            return _FALLBACK_RETRY_AFTER

    async def _wait_for_throttle(self) -> None:
        if self._throttle_until is None:
            return
        delay = self._throttle_until - time.time()
        self._throttle_until = None
        if delay > 0:
            await asyncio.sleep(delay)

    async def _run_hooks(self, response: aiohttp.ClientResponse) -> None:
        for hook in self._response_hooks:
            try:
                delay = hook(response)
                if inspect.isawaitable(delay):
                    delay = await delay
            except Exception:
                logger.exception("response_hook_failed")
                continue
            if delay:
                self.set_throttle(float(delay))
