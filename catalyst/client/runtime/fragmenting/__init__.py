"""Query fragmenting layer for long filter lists and paginated listings.

This module splits large id/pointer lists into several bounded-length
URLs, walks the pages of each resulting query and merges the results with
deduplication.

Architecture:
    The fragmenting layer consists of:
    - definitions.py: Policy and fragment structures (FragmentPolicy, QueryFragment)
    - planners.py: URL splitting logic (QueryFragmenter)
    - executors.py: Page walking and merging (PaginatedFetcher, split_and_fetch)
    - telemetry.py: Structured logging
"""

from __future__ import annotations

from .definitions import FragmentPolicy, QueryFragment, QueryParams, normalize_query_params
from .executors import (
    PaginatedFetcher,
    split_and_fetch,
    split_and_fetch_paginated,
)
from .planners import QueryFragmenter, split_values_into_many_queries

__all__ = [
    "FragmentPolicy",
    "QueryFragment",
    "QueryParams",
    "QueryFragmenter",
    "PaginatedFetcher",
    "normalize_query_params",
    "split_and_fetch",
    "split_and_fetch_paginated",
    "split_values_into_many_queries",
]
