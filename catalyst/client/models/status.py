"""Server status data model."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ServerStatus(BaseModel):
    """Answer of the /status endpoint."""

    name: str | None = None
    version: str | None = None
    current_time: int
    last_immutable_time: int | None = None
    history_size: int | None = None

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)
