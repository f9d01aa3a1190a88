"""Entity data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import EntityType


class ContentReference(BaseModel):
    """Link between a file name inside an entity and the hash of its bytes."""

    file: str = Field(..., min_length=1)
    hash: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class Entity(BaseModel):
    """Immutable, content-addressed record of a deployment.

    The id is always the hash of the serialized manifest; it is never
    chosen by the caller.
    """

    id: str = Field(..., min_length=1)
    type: EntityType | str
    pointers: list[str] = Field(..., min_length=1)
    timestamp: int
    content: list[ContentReference] | None = None
    metadata: Any = None

    model_config = ConfigDict(frozen=True)

    def manifest(self) -> dict[str, Any]:
        """Return the wire manifest (everything but the id), omitting unset fields."""
        data = self.model_dump(mode="json", exclude={"id"})
        return {key: value for key, value in data.items() if value is not None}

    def hash_for(self, file_name: str) -> str | None:
        """Hash of the content file with the given name, if referenced."""
        for reference in self.content or []:
            if reference.file == file_name:
                return reference.hash
        return None
