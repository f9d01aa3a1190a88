"""Entity building, deployment preparation and availability checks."""

from .availability import AvailabilityResolver, select_files_to_upload
from .builder import (
    build_entity,
    build_entity_and_file,
    build_entity_without_new_files,
    check_unique_file_names,
    serialize_manifest,
)

__all__ = [
    "AvailabilityResolver",
    "build_entity",
    "build_entity_and_file",
    "build_entity_without_new_files",
    "check_unique_file_names",
    "select_files_to_upload",
    "serialize_manifest",
]
