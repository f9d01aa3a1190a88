"""Fragmentation metadata definitions and policy structures.

This module defines the data structures that describe how a long list of
query values is split into several bounded-length URLs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from urllib.parse import quote

from ...config import DEFAULT_MAX_URL_LENGTH

# Either a single named parameter or several, in declaration order
QueryParams = tuple[str, Iterable[str]] | Mapping[str, Iterable[str]]

OversizedHook = Callable[[str, int], None]


@dataclass(frozen=True)
class FragmentPolicy:
    """Fragmentation policy.

    Attributes:
        max_url_length: Every fragment must be strictly shorter than this
        reserved_params: Parameters appended later (e.g. pagination), mapped
            to the number of characters their value may take
        strict: Raise FragmentationError for a value that cannot fit instead
            of emitting it as its own oversized fragment
        on_oversized: Optional hook called with (value, url_length) when an
            oversized fragment is emitted
    """

    max_url_length: int = DEFAULT_MAX_URL_LENGTH
    reserved_params: Mapping[str, int] = field(default_factory=dict)
    strict: bool = False
    on_oversized: OversizedHook | None = None

    def __post_init__(self) -> None:
        if self.max_url_length <= 0:
            raise ValueError("FragmentPolicy max_url_length must be positive")

    @property
    def reserved_chars(self) -> int:
        """Characters kept free for ``&name=value`` of every reserved parameter."""
        return sum(len(name) + 2 + chars for name, chars in self.reserved_params.items())


@dataclass(frozen=True)
class QueryFragment:
    """One bounded-length query.

    Attributes:
        url: Complete URL including the query string
        values: Values of the split parameter carried by this fragment
        fragment_index: Zero-based position in the overall plan
    """

    url: str
    values: tuple[str, ...]
    fragment_index: int = 0


def encode_value(value: object) -> str:
    """Percent-encode a query value, keeping pointer-friendly separators."""
    return quote(str(value), safe=",:")


def normalize_query_params(query_params: QueryParams) -> dict[str, list[str]]:
    """Turn either accepted shape into an ordered name -> distinct values map.

    Values are deduplicated keeping their first position and parameters
    without values are dropped.
    """
    if isinstance(query_params, tuple):
        name, values = query_params
        items: Iterable[tuple[str, Iterable[str]]] = [(name, values)]
    else:
        items = query_params.items()

    normalized: dict[str, list[str]] = {}
    for name, values in items:
        distinct = list(dict.fromkeys(str(value) for value in values))
        if distinct:
            normalized[name] = distinct
    return normalized
