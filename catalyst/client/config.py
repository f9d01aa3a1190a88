"""Shared client constants and request options.

This module centralizes limits and defaults used by the fragmenting layer,
the REST transport and the deployment builder so the client can stay small
and focused.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

# URLs longer than this are rejected by some servers and proxies
DEFAULT_MAX_URL_LENGTH = 2048

# Characters kept free on every fragment for the pagination offset value
OFFSET_RESERVED_CHARS = 7

# Next-cursor pagination on /deployments appends from/to timestamps (13 digits)
DEPLOYMENTS_RESERVED_PARAMS = {"from": 13, "to": 13}

# Reserved name of the serialized entity manifest
ENTITY_FILE_NAME = "entity.json"

DEFAULT_TIMEOUT = 30.0
DEFAULT_CONCURRENCY = 4

# Headers exposed by pipe_content-style callers, with their canonical casing
KNOWN_HEADERS = (
    "Content-Type",
    "Access-Control-Allow-Origin",
    "Access-Control-Expose-Headers",
    "ETag",
    "Date",
    "Content-Length",
    "Cache-Control",
)


@dataclass(frozen=True)
class RequestOptions:
    """Per-call network options.

    Attributes:
        timeout: Total timeout in seconds for one attempt (None = transport default)
        attempts: Number of attempts before giving up (None = 1)
        wait_time: Seconds to wait between attempts (None = 0)
    """

    timeout: float | None = None
    attempts: int | None = None
    wait_time: float | None = None

    def with_defaults(self, defaults: RequestOptions) -> RequestOptions:
        """Fill unset fields from ``defaults``."""
        values = {
            f.name: getattr(self, f.name)
            if getattr(self, f.name) is not None
            else getattr(defaults, f.name)
            for f in fields(self)
        }
        return RequestOptions(**values)


# Download integrity failures are usually truncated transfers, retry quickly
DOWNLOAD_DEFAULTS = RequestOptions(attempts=3, wait_time=0.5)

# If one page of a listing fails the whole listing fails, so retry harder
LISTING_DEFAULTS = RequestOptions(attempts=3, wait_time=1.0)

DEFAULT_OPTIONS = RequestOptions(timeout=DEFAULT_TIMEOUT, attempts=1, wait_time=0.0)

USER_AGENT = "catalyst-client"
