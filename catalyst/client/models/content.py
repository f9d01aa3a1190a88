"""Content file data models."""

from pydantic import BaseModel, ConfigDict, Field


class ContentFile(BaseModel):
    """Named byte payload, alive only during a build or deploy."""

    name: str = Field(..., min_length=1)
    content: bytes

    model_config = ConfigDict(frozen=True)


class AvailableContent(BaseModel):
    """Server answer for one hash on the availability endpoint."""

    cid: str = Field(..., min_length=1)
    available: bool

    model_config = ConfigDict(frozen=True)
