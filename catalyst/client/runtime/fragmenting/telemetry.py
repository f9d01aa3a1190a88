"""Structured logging for fragmentation and paginated fetching.

This module provides telemetry hooks for the fragmenting layer, emitting
structured logs for observability.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def log_fragments_planned(
    *,
    path: str,
    split_param: str | None,
    total_values: int,
    total_fragments: int,
    max_url_length: int,
) -> None:
    """Log creation of a fragment plan.

    Args:
        path: Endpoint path
        split_param: Parameter whose values were split (None if nothing to split)
        total_values: Distinct values of the split parameter
        total_fragments: Number of URLs produced
        max_url_length: Length budget used
    """
    logger.debug(
        "query_fragments_planned",
        extra={
            "path": path,
            "split_param": split_param,
            "total_values": total_values,
            "total_fragments": total_fragments,
            "max_url_length": max_url_length,
        },
    )


def log_oversized_value(*, path: str, param: str, url_length: int, max_url_length: int) -> None:
    """Log a value that produces a URL over budget on its own."""
    logger.warning(
        "query_value_oversized",
        extra={
            "path": path,
            "param": param,
            "url_length": url_length,
            "max_url_length": max_url_length,
        },
    )


def log_page_fetched(
    *,
    fragment_index: int,
    page_index: int,
    items: int,
    has_more: bool,
    latency_ms: float | None = None,
) -> None:
    """Log one fetched page.

    Args:
        fragment_index: Zero-based fragment index
        page_index: Zero-based page index inside the fragment
        items: Items received in the page
        has_more: Whether the server announced another page
        latency_ms: Latency in milliseconds (optional)
    """
    logger.debug(
        "page_fetched",
        extra={
            "fragment_index": fragment_index,
            "page_index": page_index,
            "items": items,
            "has_more": has_more,
            "latency_ms": latency_ms,
        },
    )


def log_fragment_error(
    *,
    fragment_index: int,
    page_index: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a failed page fetch.

    Args:
        fragment_index: Zero-based index of the failing fragment
        page_index: Zero-based index of the failing page
        error_type: Type of error (e.g., "TransportError")
        error_message: Error message
    """
    logger.error(
        "fragment_error",
        extra={
            "fragment_index": fragment_index,
            "page_index": page_index,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_fetch_complete(
    *,
    fragments: int,
    failed_fragments: int,
    total_items: int,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of a multi-fragment fetch."""
    logger.info(
        "fragmented_fetch_complete",
        extra={
            "fragments": fragments,
            "failed_fragments": failed_fragments,
            "total_items": total_items,
            "total_latency_ms": total_latency_ms,
        },
    )
