"""Unit tests for paginated fetching across fragments."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from catalyst.client.core import PartialFailurePolicy, TransportError
from catalyst.client.models import Pagination, PartialListing
from catalyst.client.runtime.fragmenting import (
    FragmentPolicy,
    PaginatedFetcher,
    split_and_fetch,
    split_and_fetch_paginated,
)

BASE_URL = "https://url.com"
PATH = "/path"


def page(items, **pagination) -> PartialListing:
    return PartialListing(items=items, pagination=Pagination(**pagination))


class TestPaginatedFetcher:
    """Test PaginatedFetcher functionality."""

    @pytest.mark.asyncio
    async def test_walks_offset_pages_in_order(self):
        """Test offset pagination requests offsets 0, 1, 2 and keeps page order."""
        pages = {
            0: page([{"id": "1"}], offset=0, limit=1, more_data=True),
            1: page([{"id": "2"}], offset=1, limit=1, more_data=True),
            2: page([{"id": "3"}], offset=2, limit=1, more_data=False),
        }
        requested: list[str] = []

        async def fetch_page(url: str) -> PartialListing:
            requested.append(url)
            return pages[int(url.rsplit("offset=", 1)[1])]

        fetcher = PaginatedFetcher()
        result = await fetcher.fetch_all(BASE_URL, PATH, ("id", ["1", "2", "3"]), fetch_page)

        assert requested == [
            f"{BASE_URL}{PATH}?id=1&id=2&id=3&offset=0",
            f"{BASE_URL}{PATH}?id=1&id=2&id=3&offset=1",
            f"{BASE_URL}{PATH}?id=1&id=2&id=3&offset=2",
        ]
        assert result == [{"id": "1"}, {"id": "2"}, {"id": "3"}]

    @pytest.mark.asyncio
    async def test_offset_without_limit_uses_page_size(self):
        """Test the next offset advances by the number of items when no limit is given."""
        fetch_page = AsyncMock(
            side_effect=[
                page([{"id": "1"}, {"id": "2"}], offset=0, more_data=True),
                page([{"id": "3"}], offset=2),
            ]
        )

        result = await PaginatedFetcher().fetch_all(BASE_URL, PATH, {}, fetch_page)

        assert fetch_page.await_args_list[1].args[0] == f"{BASE_URL}{PATH}?offset=2"
        assert [item["id"] for item in result] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_stops_when_offset_does_not_advance(self):
        """Test a server claiming more data on an empty page does not loop forever."""
        fetch_page = AsyncMock(return_value=page([], offset=0, more_data=True))

        result = await PaginatedFetcher().fetch_all(BASE_URL, PATH, {}, fetch_page)

        assert result == []
        assert fetch_page.await_count == 1

    @pytest.mark.asyncio
    async def test_offset_advances_when_server_omits_offset(self):
        """Test the next offset is computed locally when pages do not echo one."""
        requested: list[str] = []

        async def fetch_page(url: str) -> PartialListing:
            requested.append(url)
            current = int(url.rsplit("offset=", 1)[1])
            return page([{"id": str(current)}], limit=1, more_data=current < 2)

        result = await PaginatedFetcher().fetch_all(BASE_URL, PATH, {}, fetch_page)

        assert [url.rsplit("=", 1)[1] for url in requested] == ["0", "1", "2"]
        assert [item["id"] for item in result] == ["0", "1", "2"]

    @pytest.mark.asyncio
    async def test_follows_next_cursor(self):
        """Test relative next links are resolved against the current URL."""
        fetch_page = AsyncMock(
            side_effect=[
                page([{"id": "id1"}, {"id": "id2"}], limit=2, next="?from=5&id=a"),
                page([{"id": "id2"}, {"id": "id3"}], limit=2),
            ]
        )

        fetcher = PaginatedFetcher(offset_param=None)
        result = await fetcher.fetch_all(BASE_URL, PATH, ("id", ["a"]), fetch_page)

        assert fetch_page.await_args_list[0].args[0] == f"{BASE_URL}{PATH}?id=a"
        assert fetch_page.await_args_list[1].args[0] == f"{BASE_URL}{PATH}?from=5&id=a"
        assert [item["id"] for item in result] == ["id1", "id2", "id3"]

    @pytest.mark.asyncio
    async def test_deduplicates_across_fragments(self):
        """Test items seen in several fragments are kept once, first occurrence wins."""
        policy = FragmentPolicy(max_url_length=len(f"{BASE_URL}{PATH}?id=a") + 1)

        async def fetch_page(url: str) -> PartialListing:
            if "id=a" in url:
                return page([{"id": "shared", "from": "a"}, {"id": "a"}])
            return page([{"id": "shared", "from": "b"}, {"id": "b"}])

        fetcher = PaginatedFetcher(policy=policy, offset_param=None)
        result = await fetcher.fetch_all(BASE_URL, PATH, ("id", ["a", "b"]), fetch_page)

        assert result == [{"id": "shared", "from": "a"}, {"id": "a"}, {"id": "b"}]

    @pytest.mark.asyncio
    async def test_sorts_when_requested(self):
        """Test the merged result is sorted by sort_by, optionally reversed."""
        fetch_page = AsyncMock(
            return_value=page([{"id": "a", "ts": 2}, {"id": "b", "ts": 3}, {"id": "c", "ts": 1}])
        )

        ascending = await PaginatedFetcher(sort_by="ts", offset_param=None).fetch_all(
            BASE_URL, PATH, {}, fetch_page
        )
        descending = await PaginatedFetcher(
            sort_by=lambda item: item["ts"], offset_param=None, reverse=True
        ).fetch_all(BASE_URL, PATH, {}, fetch_page)

        assert [item["id"] for item in ascending] == ["c", "a", "b"]
        assert [item["id"] for item in descending] == ["b", "a", "c"]

    @pytest.mark.asyncio
    async def test_unique_by_attribute(self):
        """Test unique_by reads attributes of model items."""

        class Item:
            def __init__(self, key: str) -> None:
                self.key = key

        first, duplicate = Item("k"), Item("k")
        fetch_page = AsyncMock(return_value=page([first, duplicate]))

        result = await PaginatedFetcher(unique_by="key", offset_param=None).fetch_all(
            BASE_URL, PATH, {}, fetch_page
        )

        assert result == [first]

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            PaginatedFetcher(concurrency=0)


class TestPartialFailurePolicy:
    """Test fragment failure handling."""

    @staticmethod
    def two_fragment_policy() -> FragmentPolicy:
        return FragmentPolicy(max_url_length=len(f"{BASE_URL}{PATH}?id=a") + 1)

    @pytest.mark.asyncio
    async def test_fail_fast_raises(self):
        """Test FAIL_FAST propagates the fragment error."""

        async def fetch_page(url: str) -> PartialListing:
            if "id=b" in url:
                raise TransportError("boom", status_code=500, url=url)
            return page([{"id": "a"}])

        fetcher = PaginatedFetcher(policy=self.two_fragment_policy(), offset_param=None)

        with pytest.raises(TransportError, match="boom"):
            await fetcher.fetch_all(BASE_URL, PATH, ("id", ["a", "b"]), fetch_page)

    @pytest.mark.asyncio
    async def test_fail_fast_cancels_other_fragments(self):
        """Test FAIL_FAST cancels fragments still in flight."""
        cancelled = asyncio.Event()

        async def fetch_page(url: str) -> PartialListing:
            if "id=b" in url:
                raise TransportError("boom")
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return page([{"id": "a"}])

        fetcher = PaginatedFetcher(policy=self.two_fragment_policy(), offset_param=None)

        with pytest.raises(TransportError):
            await fetcher.fetch_all(BASE_URL, PATH, ("id", ["a", "b"]), fetch_page)

        await asyncio.wait_for(cancelled.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_fail_fast_settles_cancelled_fragments(self):
        """Test cancelled fragments have finished before the error propagates."""
        cancelled: list[str] = []

        async def fetch_page(url: str) -> PartialListing:
            if "id=b" in url:
                raise TransportError("boom")
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(url)
                raise
            return page([{"id": "a"}])

        fetcher = PaginatedFetcher(policy=self.two_fragment_policy(), offset_param=None)

        with pytest.raises(TransportError):
            await fetcher.fetch_all(BASE_URL, PATH, ("id", ["a", "b"]), fetch_page)

        assert cancelled == [f"{BASE_URL}{PATH}?id=a"]

    @pytest.mark.asyncio
    async def test_best_effort_keeps_other_fragments(self):
        """Test BEST_EFFORT drops the failing fragment and reports the error."""
        errors: list[Exception] = []

        async def fetch_page(url: str) -> PartialListing:
            if "id=b" in url:
                raise TransportError("boom")
            return page([{"id": "a"}])

        fetcher = PaginatedFetcher(
            policy=self.two_fragment_policy(),
            offset_param=None,
            failure_policy=PartialFailurePolicy.BEST_EFFORT,
            error_listener=errors.append,
        )
        result = await fetcher.fetch_all(BASE_URL, PATH, ("id", ["a", "b"]), fetch_page)

        assert result == [{"id": "a"}]
        assert len(errors) == 1
        assert isinstance(errors[0], TransportError)

    @pytest.mark.asyncio
    async def test_best_effort_failure_mid_pagination_drops_fragment(self):
        """Test a fragment failing on a later page contributes nothing."""

        async def fetch_page(url: str) -> PartialListing:
            if "from=1" in url:
                raise TransportError("page 2 failed")
            if "id=b" in url:
                return page([{"id": "b1"}], next="?from=1")
            return page([{"id": "a1"}])

        fetcher = PaginatedFetcher(
            policy=self.two_fragment_policy(),
            offset_param=None,
            failure_policy=PartialFailurePolicy.BEST_EFFORT,
        )
        result = await fetcher.fetch_all(BASE_URL, PATH, ("id", ["a", "b"]), fetch_page)

        assert result == [{"id": "a1"}]


class TestIterate:
    """Test streaming iteration."""

    @pytest.mark.asyncio
    async def test_yields_unique_items_in_order(self):
        fetch_page = AsyncMock(
            side_effect=[
                page([{"id": "1"}, {"id": "2"}], next="?page=2"),
                page([{"id": "2"}, {"id": "3"}]),
            ]
        )
        fetcher = PaginatedFetcher(offset_param=None)

        items = [item async for item in fetcher.iterate(BASE_URL, PATH, {}, fetch_page)]

        assert [item["id"] for item in items] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_fail_fast_raises(self):
        fetch_page = AsyncMock(side_effect=TransportError("boom"))
        fetcher = PaginatedFetcher(offset_param=None)

        with pytest.raises(TransportError):
            async for _ in fetcher.iterate(BASE_URL, PATH, {}, fetch_page):
                pass

    @pytest.mark.asyncio
    async def test_best_effort_reports(self):
        errors: list[Exception] = []
        fetch_page = AsyncMock(side_effect=TransportError("boom"))
        fetcher = PaginatedFetcher(
            offset_param=None,
            failure_policy=PartialFailurePolicy.BEST_EFFORT,
            error_listener=errors.append,
        )

        items = [item async for item in fetcher.iterate(BASE_URL, PATH, {}, fetch_page)]

        assert items == []
        assert len(errors) == 1


class TestSplitAndFetch:
    """Test the functional helpers."""

    @pytest.mark.asyncio
    async def test_split_and_fetch_merges_fragments(self):
        """Test non-paginated answers are merged by key."""
        policy = FragmentPolicy(max_url_length=len(f"{BASE_URL}{PATH}?cid=a") + 1)

        async def fetch_json(url: str):
            cid = url.rsplit("=", 1)[1]
            return [{"cid": cid, "available": cid == "a"}, {"cid": "a", "available": False}]

        result = await split_and_fetch(
            fetch_json=fetch_json,
            base_url=BASE_URL,
            path=PATH,
            query_params=("cid", ["a", "b"]),
            unique_by="cid",
            policy=policy,
        )

        assert result == [{"cid": "a", "available": True}, {"cid": "b", "available": False}]

    @pytest.mark.asyncio
    async def test_split_and_fetch_cancels_pending_fragments_on_error(self):
        """Test a failing fragment stops the requests still in flight."""
        policy = FragmentPolicy(max_url_length=len(f"{BASE_URL}{PATH}?id=a") + 1)
        completed: list[str] = []

        async def fetch_json(url: str):
            if url.endswith("id=a"):
                raise TransportError("boom")
            await asyncio.sleep(0.05)
            completed.append(url)
            return []

        with pytest.raises(TransportError, match="boom"):
            await split_and_fetch(
                fetch_json=fetch_json,
                base_url=BASE_URL,
                path=PATH,
                query_params=("id", ["a", "b"]),
                unique_by="id",
                policy=policy,
            )

        await asyncio.sleep(0.1)
        assert completed == []

    @pytest.mark.asyncio
    async def test_split_and_fetch_paginated(self):
        """Test subsequent pages follow the next cursor and duplicates are dropped."""
        base_url = "http://base.com"
        next_query = "?someName=value1&someName=value3"
        fetch_json = AsyncMock(
            side_effect=[
                {
                    "elements": [{"id": "id1"}, {"id": "id2"}],
                    "pagination": {"limit": 2, "next": next_query},
                },
                {"elements": [{"id": "id2"}, {"id": "id3"}], "pagination": {"limit": 2}},
            ]
        )

        result = await split_and_fetch_paginated(
            fetch_json=fetch_json,
            base_url=base_url,
            path=PATH,
            query_params=("someName", ["value1", "value2"]),
            elements_property="elements",
            unique_by="id",
        )

        assert fetch_json.await_count == 2
        assert fetch_json.await_args_list[1].args[0] == f"{base_url}{PATH}{next_query}"
        assert result == [{"id": "id1"}, {"id": "id2"}, {"id": "id3"}]
