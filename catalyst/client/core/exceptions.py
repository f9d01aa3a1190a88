"""Custom exception hierarchy."""

from __future__ import annotations


class CatalystError(Exception):
    """Base exception for all library errors."""

    pass


class ValidationError(CatalystError):
    """Caller supplied an empty or invalid required argument.

    Raised before any network call is made and never retried.
    """

    pass


class CollisionError(ValidationError):
    """Two entity file names collide once case is ignored."""

    def __init__(self, message: str, file_name: str | None = None) -> None:
        super().__init__(message)
        self.file_name = file_name


class IntegrityError(CatalystError):
    """Downloaded content does not hash to the requested hash."""

    def __init__(self, expected: str, actual: str, source: str | None = None) -> None:
        location = f" from {source}" if source else ""
        super().__init__(f"Failed to fetch file with hash {expected}{location} (got {actual})")
        self.expected = expected
        self.actual = actual
        self.source = source


class NotFoundError(CatalystError):
    """A lookup by id returned no results."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(
            f"Failed to find an entity with type '{entity_type}' and id '{entity_id}'."
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class TransportError(CatalystError):
    """Non-2xx response or network level failure."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RateLimitError(TransportError):
    """Server kept rejecting requests with a rate limit status."""

    def __init__(self, message: str, url: str | None = None, retry_after: float = 1.0) -> None:
        super().__init__(message, status_code=429, url=url)
        self.retry_after = retry_after


class FragmentationError(CatalystError):
    """A single query value does not fit in one URL."""

    def __init__(self, value: str, length: int, max_length: int) -> None:
        super().__init__(
            f"Query value {value!r} needs a URL of {length} characters, "
            f"more than the maximum of {max_length}"
        )
        self.value = value
        self.length = length
        self.max_length = max_length


class NotEnoughDataError(CatalystError):
    """Not enough peers answered to compute a trusted server list."""

    pass
