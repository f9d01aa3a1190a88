"""Core enumerations shared across the client.

Architecture:
    String enums so values serialize directly into manifests and query
    strings without conversion tables.

Key Types:
    - EntityType: Kinds of entities a catalyst stores
    - DeploymentField: Optional parts of a deployment the server can attach
    - SortingField / SortingOrder: Deployment listing order
    - PartialFailurePolicy: What to do when one query fragment fails
"""

from enum import Enum


class EntityType(str, Enum):
    """Entity kinds understood by content servers."""

    SCENE = "scene"
    PROFILE = "profile"
    WEARABLE = "wearable"
    STORE = "store"
    EMOTE = "emote"
    OUTFITS = "outfits"


class DeploymentField(str, Enum):
    """Optional deployment fields that can be requested from the server."""

    POINTERS = "pointers"
    CONTENT = "content"
    METADATA = "metadata"
    AUDIT_INFO = "auditInfo"

    @classmethod
    def to_query_value(cls, fields: frozenset["DeploymentField"]) -> str:
        """Join fields in declaration order so equal sets give equal URLs."""
        return ",".join(field.value for field in cls if field in fields)


POINTERS_CONTENT_AND_METADATA: frozenset[DeploymentField] = frozenset(
    {DeploymentField.POINTERS, DeploymentField.CONTENT, DeploymentField.METADATA}
)
POINTERS_CONTENT_METADATA_AND_AUDIT_INFO: frozenset[DeploymentField] = frozenset(DeploymentField)
AUDIT_INFO: frozenset[DeploymentField] = frozenset({DeploymentField.AUDIT_INFO})


class SortingField(str, Enum):
    LOCAL_TIMESTAMP = "local_timestamp"
    ENTITY_TIMESTAMP = "entity_timestamp"


class SortingOrder(str, Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"


class PartialFailurePolicy(str, Enum):
    """Behaviour when a fragment fails while others succeed.

    FAIL_FAST raises the first error and cancels outstanding fragments.
    BEST_EFFORT drops the failing fragment, reports the error and keeps
    everything gathered from the other fragments.
    """

    FAIL_FAST = "fail_fast"
    BEST_EFFORT = "best_effort"
