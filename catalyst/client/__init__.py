"""Catalyst Client - async client for content-addressed catalyst servers."""

from .clients.content_client import ContentClient
from .config import (
    DEFAULT_MAX_URL_LENGTH,
    DOWNLOAD_DEFAULTS,
    ENTITY_FILE_NAME,
    LISTING_DEFAULTS,
    RequestOptions,
)
from .core import (
    AUDIT_INFO,
    POINTERS_CONTENT_AND_METADATA,
    POINTERS_CONTENT_METADATA_AND_AUDIT_INFO,
    CatalystError,
    CollisionError,
    DeploymentField,
    EntityType,
    FragmentationError,
    IntegrityError,
    NotEnoughDataError,
    NotFoundError,
    PartialFailurePolicy,
    RateLimitError,
    SortingField,
    SortingOrder,
    TransportError,
    ValidationError,
)
from .deployment import (
    AvailabilityResolver,
    build_entity,
    build_entity_and_file,
    build_entity_without_new_files,
    select_files_to_upload,
)
from .discovery import (
    discover_approved_catalysts,
    fetch_approved_catalysts,
    get_updated_approved_list,
    intersect_approved_lists,
)
from .models import (
    AuditInfo,
    AuthLink,
    AvailableContent,
    ContentFile,
    ContentReference,
    Deployment,
    DeploymentData,
    DeploymentFilters,
    DeploymentPreparationData,
    DeploymentSorting,
    Entity,
    Pagination,
    PartialListing,
    ServerStatus,
)
from .runtime.fragmenting import (
    FragmentPolicy,
    PaginatedFetcher,
    QueryFragment,
    QueryFragmenter,
    split_and_fetch,
    split_values_into_many_queries,
)
from .runtime.rest import RESTTransport
from .utils import hash_bytes, hash_files, sanitize_url, verify_hash

__version__ = "0.1.0"

__all__ = [
    # Clients
    "ContentClient",
    "RESTTransport",
    # Configuration
    "RequestOptions",
    "DEFAULT_MAX_URL_LENGTH",
    "DOWNLOAD_DEFAULTS",
    "LISTING_DEFAULTS",
    "ENTITY_FILE_NAME",
    # Enums
    "EntityType",
    "DeploymentField",
    "SortingField",
    "SortingOrder",
    "PartialFailurePolicy",
    "AUDIT_INFO",
    "POINTERS_CONTENT_AND_METADATA",
    "POINTERS_CONTENT_METADATA_AND_AUDIT_INFO",
    # Exceptions
    "CatalystError",
    "ValidationError",
    "CollisionError",
    "IntegrityError",
    "NotFoundError",
    "TransportError",
    "RateLimitError",
    "FragmentationError",
    "NotEnoughDataError",
    # Content addressing
    "hash_bytes",
    "hash_files",
    "verify_hash",
    # Deployment
    "AvailabilityResolver",
    "build_entity",
    "build_entity_and_file",
    "build_entity_without_new_files",
    "select_files_to_upload",
    # Fragmenting
    "FragmentPolicy",
    "QueryFragment",
    "QueryFragmenter",
    "PaginatedFetcher",
    "split_and_fetch",
    "split_values_into_many_queries",
    # Discovery
    "discover_approved_catalysts",
    "fetch_approved_catalysts",
    "get_updated_approved_list",
    "intersect_approved_lists",
    # Models
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
    # Utilities
    "sanitize_url",
]
