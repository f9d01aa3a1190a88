"""Deployment data models.

Request-side models (preparation data, auth chain) are built locally.
Response-side models (Deployment, AuditInfo) mirror the camelCase JSON the
content server returns, so they use a camel alias generator and accept
either spelling on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.enums import EntityType
from .entity import ContentReference


class AuthLink(BaseModel):
    """One signature/ownership-proof link of an auth chain."""

    type: str
    payload: str
    signature: str = ""

    model_config = ConfigDict(frozen=True)


class DeploymentPreparationData(BaseModel):
    """Everything needed to sign and deploy an entity.

    Attributes:
        entity_id: Derived entity id (hash of the manifest)
        files: Content keyed by hash; the manifest is stored under ``entity_id``
    """

    entity_id: str = Field(..., min_length=1)
    files: dict[str, bytes]

    model_config = ConfigDict(frozen=True)


class DeploymentData(DeploymentPreparationData):
    """Preparation data plus the auth chain that signs the entity id."""

    auth_chain: list[AuthLink] = Field(..., min_length=1)


class AuditInfo(BaseModel):
    version: str | None = None
    auth_chain: list[AuthLink] = Field(default_factory=list)
    local_timestamp: int | None = None
    overwritten_by: str | None = None
    is_denylisted: bool | None = None
    denylisted_content: list[str] | None = None

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Deployment(BaseModel):
    """A deployment as listed by the /deployments endpoint."""

    entity_id: str
    entity_type: EntityType | str
    entity_timestamp: int
    deployed_by: str
    entity_version: str | None = None
    local_timestamp: int | None = None
    pointers: list[str] | None = None
    content: list[ContentReference] | None = None
    metadata: Any = None
    audit_info: AuditInfo | None = None

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    @property
    def sort_timestamp(self) -> int:
        """Local timestamp when known, entity timestamp otherwise."""
        if self.local_timestamp is not None:
            return self.local_timestamp
        if self.audit_info is not None and self.audit_info.local_timestamp is not None:
            return self.audit_info.local_timestamp
        return self.entity_timestamp
