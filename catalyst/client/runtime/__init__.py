"""Runtime orchestration components."""

from .fragmenting import FragmentPolicy, PaginatedFetcher, QueryFragmenter
from .rest import HTTPClient, RESTTransport

__all__ = [
    "FragmentPolicy",
    "HTTPClient",
    "PaginatedFetcher",
    "QueryFragmenter",
    "RESTTransport",
]
