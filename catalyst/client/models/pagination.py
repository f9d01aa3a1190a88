"""Paginated listing models."""

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Pagination(BaseModel):
    """Pagination block of a listing response.

    Servers signal "more pages" either with ``moreData`` plus offset/limit
    arithmetic, or with a relative ``next`` URL.
    """

    offset: int = 0
    limit: int | None = None
    more_data: bool = Field(default=False, alias="moreData")
    next: str | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def has_more(self) -> bool:
        return bool(self.next) or self.more_data


class PartialListing(BaseModel, Generic[T]):
    """One page of a listing."""

    items: list[T]
    pagination: Pagination = Field(default_factory=Pagination)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_response(
        cls,
        response: Any,
        items_key: str,
        parse: Callable[[Any], T] | None = None,
    ) -> "PartialListing[T]":
        """Build a page from raw JSON where items live under ``items_key``."""
        raw_items = response.get(items_key) or []
        items = [parse(item) for item in raw_items] if parse else list(raw_items)
        pagination = Pagination.model_validate(response.get("pagination") or {})
        return cls(items=items, pagination=pagination)
