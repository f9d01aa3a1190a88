"""Content availability resolution for selective uploads."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from ..core.exceptions import ValidationError
from ..models import AvailableContent, DeploymentPreparationData
from ..runtime.fragmenting import FragmentPolicy, split_and_fetch

AVAILABLE_CONTENT_PATH = "/available-content"


class AvailabilityResolver:
    """Asks a content server which hashes it already stores.

    The hash list is split into as many bounded URLs as needed; answers are
    merged by ``cid``.
    """

    def __init__(
        self,
        fetch_json: Callable[[str], Awaitable[Any]],
        base_url: str,
        *,
        policy: FragmentPolicy | None = None,
        path: str = AVAILABLE_CONTENT_PATH,
    ) -> None:
        self._fetch_json = fetch_json
        self._base_url = base_url
        self._policy = policy
        self._path = path

    async def check(self, cids: Iterable[str]) -> list[AvailableContent]:
        """Return the server's availability answer for every hash.

        Raises:
            ValidationError: If no hash is given, before any request is made
        """
        cids = list(cids)
        if not cids:
            raise ValidationError("You must set at least one identifier.")

        answers = await split_and_fetch(
            fetch_json=self._fetch_json,
            base_url=self._base_url,
            path=self._path,
            query_params=("cid", cids),
            unique_by="cid",
            policy=self._policy,
        )
        return [AvailableContent.model_validate(answer) for answer in answers]

    async def resolve(self, cids: Iterable[str]) -> set[str]:
        """Return the subset of ``cids`` already available on the server."""
        return {answer.cid for answer in await self.check(cids) if answer.available}


def select_files_to_upload(
    data: DeploymentPreparationData, available: set[str]
) -> dict[str, bytes]:
    """Files of a deployment that must be sent.

    Content already on the server is skipped, except the entity manifest,
    which is always sent because it triggers the deployment.
    """
    return {
        file_hash: content
        for file_hash, content in data.files.items()
        if file_hash not in available or file_hash == data.entity_id
    }
