"""Entity building and deployment preparation.

Architecture:
    build_entity_and_file turns entity data into the canonical manifest
    bytes and derives the entity id from them. build_entity hashes the
    caller's files, builds the manifest referencing them and returns the
    hash-keyed file set that a deployment uploads.

Design Decisions:
    - Canonical form: compact JSON, fields in the order type, pointers,
      timestamp, content, metadata, unset fields omitted. Existing servers
      recompute the id from these bytes, so the order is part of the protocol.
    - The manifest is stored in the file set under its own id, like any
      other content-addressed file.
    - File names are checked case-insensitively because some target
      platforms are case-insensitive.
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterable, Mapping
from typing import Any

from ..config import ENTITY_FILE_NAME
from ..core.enums import EntityType
from ..core.exceptions import CollisionError, ValidationError
from ..models import ContentFile, ContentReference, DeploymentPreparationData, Entity
from ..utils.hashing import hash_bytes, hash_files


def _now_millis() -> int:
    return int(time.time() * 1000)


def check_unique_file_names(file_names: Iterable[str]) -> None:
    """Reject names that repeat once lower-cased, or that shadow the manifest.

    Raises:
        CollisionError: On the first colliding name
    """
    used = {ENTITY_FILE_NAME.lower()}
    for name in file_names:
        lowered = name.lower()
        if lowered in used:
            raise CollisionError(
                "Error creating the deployable entity: file names are case insensitive, "
                f"the file {json.dumps(name)} is repeated",
                file_name=name,
            )
        used.add(lowered)


def serialize_manifest(
    entity_type: EntityType | str,
    pointers: list[str],
    timestamp: int,
    content: list[ContentReference] | None = None,
    metadata: Any = None,
) -> bytes:
    """Serialize entity data into its canonical bytes."""
    manifest: dict[str, Any] = {
        "type": entity_type.value if isinstance(entity_type, EntityType) else entity_type,
        "pointers": list(pointers),
        "timestamp": timestamp,
    }
    if content is not None:
        manifest["content"] = [{"file": ref.file, "hash": ref.hash} for ref in content]
    if metadata is not None:
        manifest["metadata"] = metadata
    return json.dumps(manifest, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_entity_and_file(
    entity_type: EntityType | str,
    pointers: list[str],
    timestamp: int,
    content: list[ContentReference] | None = None,
    metadata: Any = None,
) -> tuple[Entity, ContentFile]:
    """Build the entity manifest file and derive the entity id from it.

    Args:
        entity_type: Entity type
        pointers: Pointers the entity claims (at least one)
        timestamp: Entity timestamp in epoch milliseconds
        content: References to the entity's files
        metadata: Arbitrary JSON metadata

    Returns:
        The entity (with its derived id) and the manifest as a named file

    Raises:
        ValidationError: If no pointer is given
        CollisionError: If two content file names collide
    """
    if not pointers:
        raise ValidationError("All entities must have at least one pointer.")

    if content:
        check_unique_file_names(ref.file for ref in content)

    entity_file = serialize_manifest(entity_type, pointers, timestamp, content, metadata)
    entity = Entity(
        id=hash_bytes(entity_file),
        type=entity_type,
        pointers=list(pointers),
        timestamp=timestamp,
        content=content,
        metadata=metadata,
    )
    return entity, ContentFile(name=ENTITY_FILE_NAME, content=entity_file)


async def build_entity(
    entity_type: EntityType | str,
    pointers: list[str],
    files: Mapping[str, bytes] | None = None,
    metadata: Any = None,
    timestamp: int | None = None,
) -> DeploymentPreparationData:
    """Prepare a deployment from raw files.

    Files are hashed concurrently. Files with identical bytes collapse into
    one entry of the resulting file set.

    Args:
        entity_type: Entity type
        pointers: Pointers the entity claims (at least one)
        files: File name -> bytes
        metadata: Arbitrary JSON metadata
        timestamp: Entity timestamp (defaults to now, epoch milliseconds)

    Raises:
        ValidationError: If no pointer is given
    """
    if not pointers:
        raise ValidationError("All entities must have at least one pointer.")

    files = files or {}
    hashes_by_key = await hash_files(files)
    files_by_hash = {hashes_by_key[name]: content for name, content in files.items()}
    return _build_preparation_data(
        entity_type, pointers, hashes_by_key, files_by_hash, metadata, timestamp
    )


def build_entity_without_new_files(
    entity_type: EntityType | str,
    pointers: list[str],
    hashes_by_key: Mapping[str, str] | None = None,
    metadata: Any = None,
    timestamp: int | None = None,
) -> DeploymentPreparationData:
    """Prepare a deployment that only references content already on the server.

    The resulting file set holds just the manifest.
    """
    return _build_preparation_data(
        entity_type, pointers, hashes_by_key or {}, {}, metadata, timestamp
    )


def _build_preparation_data(
    entity_type: EntityType | str,
    pointers: list[str],
    hashes_by_key: Mapping[str, str],
    files_by_hash: dict[str, bytes],
    metadata: Any,
    timestamp: int | None,
) -> DeploymentPreparationData:
    content = [
        ContentReference(file=name, hash=file_hash) for name, file_hash in hashes_by_key.items()
    ]
    entity, entity_file = build_entity_and_file(
        entity_type,
        pointers,
        timestamp if timestamp is not None else _now_millis(),
        content=content,
        metadata=metadata,
    )
    files = dict(files_by_hash)
    files[entity.id] = entity_file.content
    return DeploymentPreparationData(entity_id=entity.id, files=files)
