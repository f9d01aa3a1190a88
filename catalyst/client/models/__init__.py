"""Data models for entities, content and deployments.

Architecture:
    This module exports all Pydantic v2 data models used throughout the client.
    All models are immutable (frozen=True) so values built for a deployment
    cannot change between hashing and upload.

Model Categories:
    - Entities: Entity, ContentReference
    - Content: ContentFile, AvailableContent
    - Deployments: DeploymentPreparationData, DeploymentData, AuthLink,
      Deployment, AuditInfo
    - Listings: Pagination, PartialListing, DeploymentFilters, DeploymentSorting
    - Status: ServerStatus
"""

from .content import AvailableContent, ContentFile
from .deployment import (
    AuditInfo,
    AuthLink,
    Deployment,
    DeploymentData,
    DeploymentPreparationData,
)
from .entity import ContentReference, Entity
from .filters import DeploymentFilters, DeploymentSorting, convert_filters_to_query_params
from .pagination import Pagination, PartialListing
from .status import ServerStatus

__all__ = [
    "AuditInfo",
    "AuthLink",
    "AvailableContent",
    "ContentFile",
    "ContentReference",
    "Deployment",
    "DeploymentData",
    "DeploymentFilters",
    "DeploymentPreparationData",
    "DeploymentSorting",
    "Entity",
    "Pagination",
    "PartialListing",
    "ServerStatus",
    "convert_filters_to_query_params",
]
