"""Fragment execution logic for fetching and merging listings.

This module provides the PaginatedFetcher class that walks every page of
every fragment produced by the QueryFragmenter, then merges the results
with deduplication by a natural identifier.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Hashable, Iterable
from time import perf_counter
from typing import Any, Generic, TypeVar
from urllib.parse import urljoin

from ...config import DEFAULT_CONCURRENCY, OFFSET_RESERVED_CHARS
from ...core.enums import PartialFailurePolicy
from ...models.pagination import PartialListing
from .definitions import FragmentPolicy, QueryParams
from .planners import QueryFragmenter
from .telemetry import log_fetch_complete, log_fragment_error, log_page_fetched

T = TypeVar("T")

PageFetcher = Callable[[str], Awaitable[PartialListing[T]]]
ErrorListener = Callable[[Exception], None]
KeySelector = str | Callable[[Any], Any]


def _select(item: Any, selector: KeySelector) -> Any:
    if callable(selector):
        return selector(item)
    if isinstance(item, dict):
        return item[selector]
    return getattr(item, selector)


def _with_param(url: str, name: str, value: object) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{name}={value}"


async def _cancel_all(tasks: list[asyncio.Task[Any]]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class PaginatedFetcher(Generic[T]):
    """Consumes paginated listings across fragmented queries.

    Pages inside one fragment are fetched strictly in order, each request
    depending on the previous page's pagination block. Fragments are
    independent and run concurrently, bounded by ``concurrency``.
    """

    def __init__(
        self,
        *,
        unique_by: KeySelector = "id",
        sort_by: KeySelector | None = None,
        policy: FragmentPolicy | None = None,
        offset_param: str | None = "offset",
        failure_policy: PartialFailurePolicy = PartialFailurePolicy.FAIL_FAST,
        error_listener: ErrorListener | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        reverse: bool = False,
    ) -> None:
        """Initialize paginated fetcher.

        Args:
            unique_by: Field name or function giving each item's identifier
            sort_by: Optional field name or function used for a stable final sort
            policy: Fragmentation policy; by default reserves room for the offset
            offset_param: Query parameter carrying the page offset, or None when
                the endpoint paginates only with a ``next`` cursor
            failure_policy: FAIL_FAST raises, BEST_EFFORT keeps other fragments
            error_listener: Called with every fragment error in BEST_EFFORT mode
            concurrency: Maximum fragments fetched at once
            reverse: Sort in descending order
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if policy is None:
            reserved = {offset_param: OFFSET_RESERVED_CHARS} if offset_param else {}
            policy = FragmentPolicy(reserved_params=reserved)
        self._fragmenter = QueryFragmenter(policy)
        self._unique_by = unique_by
        self._sort_by = sort_by
        self._offset_param = offset_param
        self._failure_policy = failure_policy
        self._error_listener = error_listener
        self._concurrency = concurrency
        self._reverse = reverse

    async def fetch_all(
        self,
        base_url: str,
        path: str,
        query_params: QueryParams,
        page_fetcher: PageFetcher[T],
    ) -> list[T]:
        """Fetch every page of every fragment and merge the items.

        Args:
            base_url: Server URL
            path: Listing endpoint path
            query_params: Filters; the largest value list is split across fragments
            page_fetcher: Async function returning one page for a URL

        Returns:
            Items deduplicated by ``unique_by`` in first-seen order (fragment
            order, then page order), sorted by ``sort_by`` when given

        Raises:
            Exception: The first fragment error, in FAIL_FAST mode
        """
        fragments = self._fragmenter.split(base_url, path, query_params)
        semaphore = asyncio.Semaphore(self._concurrency)
        start = perf_counter()

        async def bounded(index: int, url: str) -> list[T]:
            async with semaphore:
                return [item async for item in self._walk_fragment(index, url, page_fetcher)]

        tasks = [asyncio.create_task(bounded(i, url)) for i, url in enumerate(fragments)]
        best_effort = self._failure_policy is PartialFailurePolicy.BEST_EFFORT
        try:
            results = await asyncio.gather(*tasks, return_exceptions=best_effort)
        except BaseException:
            await _cancel_all(tasks)
            raise

        pages: list[list[T]] = []
        failed = 0
        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failed += 1
                self._report(result)
                continue
            pages.append(result)

        items = self._merge(pages)
        log_fetch_complete(
            fragments=len(fragments),
            failed_fragments=failed,
            total_items=len(items),
            total_latency_ms=(perf_counter() - start) * 1000.0,
        )
        return items

    async def iterate(
        self,
        base_url: str,
        path: str,
        query_params: QueryParams,
        page_fetcher: PageFetcher[T],
    ) -> AsyncIterator[T]:
        """Yield unique items as pages arrive, one fragment after the other.

        Items already yielded cannot be taken back, so in BEST_EFFORT mode a
        failing fragment keeps whatever it produced before the failure.
        """
        seen: set[Hashable] = set()
        for index, url in enumerate(self._fragmenter.split(base_url, path, query_params)):
            try:
                async for item in self._walk_fragment(index, url, page_fetcher):
                    key = _select(item, self._unique_by)
                    if key not in seen:
                        seen.add(key)
                        yield item
            except Exception as e:
                if self._failure_policy is PartialFailurePolicy.FAIL_FAST:
                    raise
                self._report(e)

    async def _walk_fragment(
        self, fragment_index: int, fragment_url: str, page_fetcher: PageFetcher[T]
    ) -> AsyncIterator[T]:
        offset = 0
        url = (
            _with_param(fragment_url, self._offset_param, offset)
            if self._offset_param
            else fragment_url
        )
        page_index = 0
        while True:
            page_start = perf_counter()
            try:
                page = await page_fetcher(url)
            except Exception as e:
                log_fragment_error(
                    fragment_index=fragment_index,
                    page_index=page_index,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                raise

            pagination = page.pagination
            log_page_fetched(
                fragment_index=fragment_index,
                page_index=page_index,
                items=len(page.items),
                has_more=pagination.has_more,
                latency_ms=(perf_counter() - page_start) * 1000.0,
            )
            for item in page.items:
                yield item

            if pagination.next:
                url = urljoin(url, pagination.next)
            elif pagination.more_data and self._offset_param:
                step = pagination.limit if pagination.limit else len(page.items)
                echoed = "offset" in pagination.model_fields_set
                next_offset = (pagination.offset if echoed else offset) + step
                # A server that claims more data without advancing would loop forever
                if next_offset <= offset:
                    return
                offset = next_offset
                url = _with_param(fragment_url, self._offset_param, offset)
            else:
                return
            page_index += 1

    def _merge(self, pages: Iterable[list[T]]) -> list[T]:
        merged: dict[Hashable, T] = {}
        for items in pages:
            for item in items:
                merged.setdefault(_select(item, self._unique_by), item)
        result = list(merged.values())
        if self._sort_by is not None:
            sort_by = self._sort_by
            result.sort(key=lambda item: _select(item, sort_by), reverse=self._reverse)
        return result

    def _report(self, error: Exception) -> None:
        if self._error_listener is not None:
            self._error_listener(error)


async def split_and_fetch(
    *,
    fetch_json: Callable[[str], Awaitable[Any]],
    base_url: str,
    path: str,
    query_params: QueryParams,
    unique_by: KeySelector,
    policy: FragmentPolicy | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[Any]:
    """Fetch a non-paginated JSON array endpoint across fragments.

    Every fragment answers with a list; lists are merged keeping the first
    occurrence of each ``unique_by`` key in fragment order.
    """
    queries = QueryFragmenter(policy).split(base_url, path, query_params)
    semaphore = asyncio.Semaphore(concurrency)

    async def bounded(url: str) -> Any:
        async with semaphore:
            return await fetch_json(url)

    tasks = [asyncio.create_task(bounded(url)) for url in queries]
    try:
        responses = await asyncio.gather(*tasks)
    except BaseException:
        await _cancel_all(tasks)
        raise
    merged: dict[Hashable, Any] = {}
    for response in responses:
        for element in response or []:
            merged.setdefault(_select(element, unique_by), element)
    return list(merged.values())


async def split_and_fetch_paginated(
    *,
    fetch_json: Callable[[str], Awaitable[Any]],
    base_url: str,
    path: str,
    query_params: QueryParams,
    elements_property: str,
    unique_by: KeySelector,
    offset_param: str | None = "offset",
    parse: Callable[[Any], Any] | None = None,
) -> list[Any]:
    """Paginated counterpart of ``split_and_fetch`` for raw JSON listings."""

    async def page_fetcher(url: str) -> PartialListing[Any]:
        return PartialListing.from_response(await fetch_json(url), elements_property, parse)

    fetcher: PaginatedFetcher[Any] = PaginatedFetcher(
        unique_by=unique_by, offset_param=offset_param
    )
    return await fetcher.fetch_all(base_url, path, query_params, page_fetcher)
