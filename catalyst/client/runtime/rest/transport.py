"""REST transport: JSON, buffer and multipart calls with retries.

RESTTransport is the only component that talks to the network. Every call
takes RequestOptions; the timeout applies to each attempt and attempts /
wait_time drive the retry loop.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

import aiohttp

from ...config import DEFAULT_OPTIONS, DEFAULT_TIMEOUT, RequestOptions
from ...utils.retry import retry_async
from .http_client import HTTPClient, ResponseHook


class RESTTransport:
    """Thin REST transport with retry-with-timeout semantics."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        default_options: RequestOptions | None = None,
    ) -> None:
        self._http = HTTPClient(base_url=base_url, timeout=timeout, headers=headers)
        self._defaults = (default_options or RequestOptions()).with_defaults(DEFAULT_OPTIONS)

    def add_response_hook(self, hook: ResponseHook) -> None:
        self._http.add_response_hook(hook)

    def resolve_options(self, options: RequestOptions | None = None) -> RequestOptions:
        """Fill unset fields of ``options`` with the transport defaults."""
        return (options or RequestOptions()).with_defaults(self._defaults)

    async def fetch_json(self, url: str, options: RequestOptions | None = None) -> Any:
        return await self._with_retries(
            lambda timeout: self._http.get(url, timeout=timeout), options, f"fetch {url}"
        )

    async def fetch_buffer(self, url: str, options: RequestOptions | None = None) -> bytes:
        return await self._with_retries(
            lambda timeout: self._http.get_bytes(url, timeout=timeout), options, f"fetch {url}"
        )

    async def pipe(
        self,
        url: str,
        write: Callable[[bytes], Awaitable[None] | None],
        options: RequestOptions | None = None,
    ) -> dict[str, str]:
        """Stream a body into ``write``. Not retried: written bytes cannot be taken back."""
        resolved = self.resolve_options(options)
        return await self._http.stream(url, write, timeout=resolved.timeout)

    async def post_multipart(
        self,
        url: str,
        fields: Iterable[tuple[str, str]],
        files: Mapping[str, bytes],
        options: RequestOptions | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """POST a multipart form. Files are sent with their key as file name."""
        fields = list(fields)

        def build_form() -> aiohttp.FormData:
            # FormData is single-use; one per attempt
            form = aiohttp.FormData()
            for name, value in fields:
                form.add_field(name, value)
            for name, content in files.items():
                form.add_field(
                    name, content, filename=name, content_type="application/octet-stream"
                )
            return form

        return await self._with_retries(
            lambda timeout: self._http.post(
                url, data=build_form(), headers=headers, timeout=timeout
            ),
            options,
            f"post {url}",
        )

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> RESTTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _with_retries(
        self,
        call: Callable[[float | None], Awaitable[Any]],
        options: RequestOptions | None,
        description: str,
    ) -> Any:
        resolved = self.resolve_options(options)
        return await retry_async(
            lambda: call(resolved.timeout),
            attempts=resolved.attempts or 1,
            wait_time=resolved.wait_time or 0.0,
            description=description,
        )
