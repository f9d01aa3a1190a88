"""Approved catalyst list discovery.

Architecture:
    Every known catalyst can report the list of servers approved by the
    network. A single server may be stale or lying, so several lists are
    requested and only servers present in all of them are kept.

Design Decisions:
    - The first batch is requested concurrently with a few spares; remaining
      servers are asked one at a time until enough lists are gathered
    - Servers are shuffled so repeated discoveries spread load
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Iterable, Sequence

from .config import RequestOptions
from .core.exceptions import CatalystError, NotEnoughDataError
from .runtime.rest import RESTTransport
from .utils.urls import sanitize_url

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_LISTS = 3

# Extra servers asked in the first concurrent batch
_SPARE_REQUESTS = 3

ListFetcher = Callable[[str], Awaitable[list[str] | None]]


def intersect_approved_lists(lists: Sequence[Iterable[str]], quorum: int) -> list[str]:
    """Keep the servers that appear in every list.

    The result keeps first-seen order across the lists.

    Raises:
        NotEnoughDataError: If fewer than ``quorum`` lists are given
    """
    if quorum < 1 or len(lists) < quorum:
        raise NotEnoughDataError(
            f"Need {quorum} approved lists to reach a decision but got {len(lists)}"
        )
    selected = [list(servers) for servers in lists]
    common = set(selected[0]).intersection(*selected[1:])
    ordered = dict.fromkeys(server for servers in selected for server in servers)
    return [server for server in ordered if server in common]


async def get_updated_approved_list(
    known_servers: Iterable[str],
    fetch_list: ListFetcher,
    required_lists: int = DEFAULT_REQUIRED_LISTS,
) -> list[str]:
    """Ask known servers for the approved list and intersect the answers.

    Args:
        known_servers: Catalyst URLs to ask
        fetch_list: Returns the approved list a server reports, or None when
            it could not be obtained
        required_lists: Number of lists that must agree

    Raises:
        NotEnoughDataError: If too few servers are known, too few of them
            answer, or the answers have nothing in common
    """
    servers = list(dict.fromkeys(known_servers))
    if len(servers) < required_lists:
        raise NotEnoughDataError(
            f"Need at least {required_lists} known servers but got {len(servers)}"
        )
    random.shuffle(servers)

    first_batch = servers[: required_lists + _SPARE_REQUESTS]
    answers = await asyncio.gather(*(fetch_list(server) for server in first_batch))
    lists = [answer for answer in answers if answer is not None]

    for server in servers[len(first_batch) :]:
        if len(lists) >= required_lists:
            break
        answer = await fetch_list(server)
        if answer is not None:
            lists.append(answer)

    logger.debug(
        "approved_lists_gathered",
        extra={"asked": len(servers), "answered": len(lists), "required": required_lists},
    )
    approved = intersect_approved_lists(lists, required_lists)
    if not approved:
        raise NotEnoughDataError("The approved lists gathered have no server in common")
    return approved


async def fetch_approved_catalysts(
    transport: RESTTransport,
    server: str,
    options: RequestOptions | None = None,
) -> list[str] | None:
    """Approved list reported by ``server``, or None if it cannot be fetched."""
    url = f"{sanitize_url(server)}/lambdas/contracts/servers"
    try:
        response = await transport.fetch_json(url, options)
        return [entry["address"] for entry in response]
    except (CatalystError, KeyError, TypeError) as e:
        logger.warning(
            "approved_list_unavailable",
            extra={"server": server, "error_type": type(e).__name__, "error_message": str(e)},
        )
        return None


async def discover_approved_catalysts(
    known_servers: Iterable[str],
    *,
    transport: RESTTransport | None = None,
    required_lists: int = DEFAULT_REQUIRED_LISTS,
    options: RequestOptions | None = None,
) -> list[str]:
    """Discover approved catalysts through the lambdas endpoint of known servers."""
    own_transport = transport is None
    transport = transport or RESTTransport()
    try:
        return await get_updated_approved_list(
            known_servers,
            lambda server: fetch_approved_catalysts(transport, server, options),
            required_lists,
        )
    finally:
        if own_transport:
            await transport.close()
