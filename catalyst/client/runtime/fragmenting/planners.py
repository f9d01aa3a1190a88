"""Fragment planning logic for long query-value lists.

This module provides the QueryFragmenter class that splits the values of a
query parameter across as few URLs as possible while keeping every URL
under a length budget.
"""

from __future__ import annotations

from ...core.exceptions import FragmentationError
from .definitions import (
    FragmentPolicy,
    QueryFragment,
    QueryParams,
    encode_value,
    normalize_query_params,
)
from .telemetry import log_fragments_planned, log_oversized_value


class QueryFragmenter:
    """Plans bounded-length queries.

    The parameter with the most distinct values is the one split across
    fragments; every other parameter is repeated in full on each fragment
    since those are few and needed for correct filtering. Length is
    measured on the encoded URL plus the characters reserved by the policy
    for parameters appended later (such as a pagination offset).
    """

    def __init__(self, policy: FragmentPolicy | None = None) -> None:
        """Initialize fragmenter.

        Args:
            policy: Fragmentation policy (default: 2048 characters, nothing reserved)
        """
        self._policy = policy or FragmentPolicy()

    @property
    def policy(self) -> FragmentPolicy:
        return self._policy

    def split(self, base_url: str, path: str, query_params: QueryParams) -> list[str]:
        """Split query params into complete URLs.

        Args:
            base_url: Server URL without trailing slash
            path: Endpoint path, starting with "/"
            query_params: ``(name, values)`` or an ordered ``{name: values}`` mapping

        Returns:
            URLs in value order, each strictly shorter than the policy budget
            unless a single value cannot fit on its own

        Raises:
            FragmentationError: If a value cannot fit and the policy is strict
        """
        return [fragment.url for fragment in self.plan(base_url, path, query_params)]

    def plan(self, base_url: str, path: str, query_params: QueryParams) -> list[QueryFragment]:
        """Same as ``split`` but keeps the values carried by each fragment."""
        params = normalize_query_params(query_params)
        root = f"{base_url}{path}"
        max_length = self._policy.max_url_length
        reserved = self._policy.reserved_chars

        if not params:
            log_fragments_planned(
                path=path,
                split_param=None,
                total_values=0,
                total_fragments=1,
                max_url_length=max_length,
            )
            return [QueryFragment(url=root, values=())]

        # max() keeps the first parameter on ties, so declaration order decides
        split_name = max(params, key=lambda name: len(params[name]))
        fixed = "&".join(
            f"{name}={encode_value(value)}"
            for name, values in params.items()
            if name != split_name
            for value in values
        )
        prefix = f"{root}?{fixed}" if fixed else root

        fragments: list[QueryFragment] = []
        current = prefix
        carried: list[str] = []
        for value in params[split_name]:
            pair = f"{split_name}={encode_value(value)}"
            if carried and len(current) + 1 + len(pair) + reserved >= max_length:
                fragments.append(
                    QueryFragment(url=current, values=tuple(carried), fragment_index=len(fragments))
                )
                current = prefix
                carried = []

            separator = "&" if (fixed or carried) else "?"
            current = f"{current}{separator}{pair}"
            carried.append(value)

            if len(carried) == 1 and len(current) + reserved >= max_length:
                self._handle_oversized(path, split_name, value, len(current) + reserved)

        fragments.append(
            QueryFragment(url=current, values=tuple(carried), fragment_index=len(fragments))
        )

        log_fragments_planned(
            path=path,
            split_param=split_name,
            total_values=len(params[split_name]),
            total_fragments=len(fragments),
            max_url_length=max_length,
        )
        return fragments

    def _handle_oversized(self, path: str, name: str, value: str, length: int) -> None:
        max_length = self._policy.max_url_length
        if self._policy.strict:
            raise FragmentationError(value, length, max_length)
        log_oversized_value(path=path, param=name, url_length=length, max_url_length=max_length)
        if self._policy.on_oversized is not None:
            self._policy.on_oversized(value, length)


def split_values_into_many_queries(
    *,
    base_url: str,
    path: str,
    query_params: QueryParams,
    policy: FragmentPolicy | None = None,
) -> list[str]:
    """Functional shortcut for ``QueryFragmenter(policy).split(...)``."""
    return QueryFragmenter(policy).split(base_url, path, query_params)
