"""Deployment listing filters and sorting."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import EntityType, SortingField, SortingOrder
from ..core.exceptions import ValidationError

_BASIC_TYPES = (str, int, float, bool)


def _to_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, EntityType | SortingField | SortingOrder):
        return value.value
    return str(value)


def convert_filters_to_query_params(filters: Mapping[str, Any] | None) -> dict[str, list[str]]:
    """Convert a filter mapping into query params.

    Plural names lose their trailing ``s`` (``pointers`` becomes ``pointer``)
    because listing endpoints take one repeated parameter per value. Unset
    and false-y values are dropped.

    Raises:
        ValidationError: If a value is not a string, number, boolean or a list of them
    """
    if not filters:
        return {}

    query_params: dict[str, list[str]] = {}
    for name, value in filters.items():
        if value is None or value is False:
            continue
        if isinstance(value, list | tuple | set | frozenset):
            values = list(value)
        else:
            values = [value]
        if any(not isinstance(v, _BASIC_TYPES) for v in values):
            raise ValidationError(
                "Query params must be either a string, a number, a boolean "
                "or an array of the types just mentioned"
            )
        if not values:
            continue
        param_name = name[:-1] if name.endswith("s") else name
        query_params[param_name] = [_to_query_value(v) for v in values]
    return query_params


class DeploymentFilters(BaseModel):
    """Filters for the /deployments listing.

    Timestamps are epoch milliseconds.
    """

    from_timestamp: int | None = None
    to_timestamp: int | None = None
    deployed_by: list[str] = Field(default_factory=list)
    entity_types: list[EntityType] = Field(default_factory=list)
    entity_ids: list[str] = Field(default_factory=list)
    pointers: list[str] = Field(default_factory=list)
    only_currently_pointed: bool = False

    model_config = ConfigDict(frozen=True)

    def is_narrowing(self) -> bool:
        """Whether any filter other than ``only_currently_pointed`` is set."""
        return bool(
            self.from_timestamp
            or self.to_timestamp
            or self.deployed_by
            or self.entity_types
            or self.entity_ids
            or self.pointers
        )

    def to_query_params(self) -> dict[str, list[str]]:
        return convert_filters_to_query_params(
            {
                "from": self.from_timestamp,
                "to": self.to_timestamp,
                "deployedBy": self.deployed_by,
                "entityTypes": self.entity_types,
                "entityIds": self.entity_ids,
                "pointers": self.pointers,
                "onlyCurrentlyPointed": self.only_currently_pointed,
            }
        )


class DeploymentSorting(BaseModel):
    field: SortingField | None = None
    order: SortingOrder | None = None

    model_config = ConfigDict(frozen=True)

    def to_query_params(self) -> dict[str, list[str]]:
        params: dict[str, list[str]] = {}
        if self.field is not None:
            params["sortingField"] = [self.field.value]
        if self.order is not None:
            params["sortingOrder"] = [self.order.value]
        return params
