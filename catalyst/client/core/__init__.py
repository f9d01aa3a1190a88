"""Core components."""

from .enums import (
    AUDIT_INFO,
    POINTERS_CONTENT_AND_METADATA,
    POINTERS_CONTENT_METADATA_AND_AUDIT_INFO,
    DeploymentField,
    EntityType,
    PartialFailurePolicy,
    SortingField,
    SortingOrder,
)
from .exceptions import (
    CatalystError,
    CollisionError,
    FragmentationError,
    IntegrityError,
    NotEnoughDataError,
    NotFoundError,
    RateLimitError,
    TransportError,
    ValidationError,
)

__all__ = [
    "EntityType",
    "DeploymentField",
    "SortingField",
    "SortingOrder",
    "PartialFailurePolicy",
    "AUDIT_INFO",
    "POINTERS_CONTENT_AND_METADATA",
    "POINTERS_CONTENT_METADATA_AND_AUDIT_INFO",
    "CatalystError",
    "ValidationError",
    "CollisionError",
    "IntegrityError",
    "NotFoundError",
    "TransportError",
    "RateLimitError",
    "FragmentationError",
    "NotEnoughDataError",
]
