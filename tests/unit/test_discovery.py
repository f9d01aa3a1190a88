"""Unit tests for approved catalyst discovery."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from catalyst.client.core import NotEnoughDataError, TransportError
from catalyst.client.discovery import (
    discover_approved_catalysts,
    fetch_approved_catalysts,
    get_updated_approved_list,
    intersect_approved_lists,
)

ADDRESS1, ADDRESS2, ADDRESS3 = "http://test1.com", "http://test2.com", "http://test3.com"


class TestIntersectApprovedLists:
    """Test intersect_approved_lists."""

    def test_intersection(self):
        lists = [[ADDRESS1, ADDRESS2], [ADDRESS2, ADDRESS3], [ADDRESS3, ADDRESS2]]
        assert intersect_approved_lists(lists, 2) == [ADDRESS2]

    def test_not_enough_lists(self):
        with pytest.raises(NotEnoughDataError):
            intersect_approved_lists([[ADDRESS1]], 2)

    def test_empty_intersection(self):
        assert intersect_approved_lists([[ADDRESS1], [ADDRESS2]], 2) == []


class TestGetUpdatedApprovedList:
    """Test get_updated_approved_list."""

    @pytest.mark.asyncio
    async def test_too_few_known_servers(self):
        """Test nothing is fetched when fewer servers are known than lists required."""
        fetch_list = AsyncMock(return_value=[])

        with pytest.raises(NotEnoughDataError):
            await get_updated_approved_list([ADDRESS1], fetch_list, required_lists=2)

        fetch_list.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_servers_are_skipped(self):
        """Test a server that does not answer does not count as a list."""
        answers = iter([None, [ADDRESS1], [ADDRESS1]])
        fetch_list = AsyncMock(side_effect=lambda server: next(answers))

        result = await get_updated_approved_list(
            [ADDRESS1, ADDRESS2, ADDRESS3], fetch_list, required_lists=2
        )

        assert result == [ADDRESS1]
        assert fetch_list.await_count == 3

    @pytest.mark.asyncio
    async def test_not_enough_lists(self):
        fetch_list = AsyncMock(return_value=None)

        with pytest.raises(NotEnoughDataError):
            await get_updated_approved_list(
                [ADDRESS1, ADDRESS2, ADDRESS3], fetch_list, required_lists=2
            )

        assert fetch_list.await_count == 3

    @pytest.mark.asyncio
    async def test_empty_intersection(self):
        """Test disagreeing servers give no answer."""
        fetch_list = AsyncMock(side_effect=lambda server: [server])

        with pytest.raises(NotEnoughDataError):
            await get_updated_approved_list(
                [ADDRESS1, ADDRESS2, ADDRESS3], fetch_list, required_lists=2
            )

    @pytest.mark.asyncio
    async def test_intersection_returned(self):
        answers = iter([[ADDRESS1, ADDRESS2], [ADDRESS2, ADDRESS3]])
        fetch_list = AsyncMock(side_effect=lambda server: next(answers))

        result = await get_updated_approved_list(
            [ADDRESS1, ADDRESS2], fetch_list, required_lists=2
        )

        assert result == [ADDRESS2]
        assert fetch_list.await_count == 2

    @pytest.mark.asyncio
    async def test_remaining_servers_asked_one_by_one(self):
        """Test servers beyond the first batch are only asked while lists are missing."""
        servers = [f"http://test{i}.com" for i in range(10)]
        calls: list[str] = []

        async def fetch_list(server: str):
            calls.append(server)
            # Only the 7th answer and later are usable
            return [ADDRESS1] if len(calls) > 6 else None

        result = await get_updated_approved_list(servers, fetch_list, required_lists=3)

        assert result == [ADDRESS1]
        assert len(calls) == 9


class TestFetchApprovedCatalysts:
    """Test the lambdas-backed list fetcher."""

    @pytest.mark.asyncio
    async def test_reads_addresses(self):
        transport = MagicMock()
        transport.fetch_json = AsyncMock(
            return_value=[{"address": ADDRESS1}, {"address": ADDRESS2}]
        )

        result = await fetch_approved_catalysts(transport, "peer.example/")

        assert result == [ADDRESS1, ADDRESS2]
        transport.fetch_json.assert_awaited_once_with(
            "https://peer.example/lambdas/contracts/servers", None
        )

    @pytest.mark.asyncio
    async def test_failure_gives_none(self):
        transport = MagicMock()
        transport.fetch_json = AsyncMock(side_effect=TransportError("down"))

        assert await fetch_approved_catalysts(transport, ADDRESS1) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [{"error": "nope"}, [{"host": ADDRESS1}], ["http://test1.com"], None],
    )
    async def test_malformed_response_gives_none(self, response):
        transport = MagicMock()
        transport.fetch_json = AsyncMock(return_value=response)

        assert await fetch_approved_catalysts(transport, ADDRESS1) is None

    @pytest.mark.asyncio
    async def test_discover_skips_malformed_peer(self):
        """Test one peer answering garbage counts as a missing answer."""

        async def fetch_json(url, options):
            if url.startswith(ADDRESS3):
                return {"error": "nope"}
            return [{"address": ADDRESS1}, {"address": ADDRESS2}]

        transport = MagicMock()
        transport.fetch_json = AsyncMock(side_effect=fetch_json)

        result = await discover_approved_catalysts(
            [ADDRESS1, ADDRESS2, ADDRESS3], transport=transport, required_lists=2
        )

        assert result == [ADDRESS1, ADDRESS2]

    @pytest.mark.asyncio
    async def test_discover_with_transport(self):
        transport = MagicMock()
        transport.fetch_json = AsyncMock(return_value=[{"address": ADDRESS1}])
        transport.close = AsyncMock()

        result = await discover_approved_catalysts(
            [ADDRESS1, ADDRESS2], transport=transport, required_lists=2
        )

        assert result == [ADDRESS1]
        transport.close.assert_not_awaited()
