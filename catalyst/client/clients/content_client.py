"""Async client for a catalyst content server.

Architecture:
    ContentClient composes the deployment builder, the availability
    resolver and the fragmenting layer over a single RESTTransport:
    - Building: hashes files and derives the entity id locally
    - Deploying: uploads only content the server does not already have
    - Querying: splits long id/pointer lists into bounded URLs and merges
      the answers, walking every page of paginated listings

Design Decisions:
    - Validation first: empty id/pointer/cid lists fail before any request
    - Errors propagate unchanged from the transport, already annotated with
      URL and status
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from ..config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_TIMEOUT,
    DEPLOYMENTS_RESERVED_PARAMS,
    DOWNLOAD_DEFAULTS,
    KNOWN_HEADERS,
    LISTING_DEFAULTS,
    USER_AGENT,
    RequestOptions,
)
from ..core.enums import (
    POINTERS_CONTENT_AND_METADATA,
    DeploymentField,
    EntityType,
    PartialFailurePolicy,
    SortingField,
    SortingOrder,
)
from ..core.exceptions import IntegrityError, NotFoundError, ValidationError
from ..deployment import (
    AvailabilityResolver,
    build_entity,
    build_entity_without_new_files,
    select_files_to_upload,
)
from ..models import (
    AuditInfo,
    AvailableContent,
    Deployment,
    DeploymentData,
    DeploymentFilters,
    DeploymentPreparationData,
    DeploymentSorting,
    Entity,
    PartialListing,
    ServerStatus,
)
from ..runtime.fragmenting import FragmentPolicy, PaginatedFetcher, split_and_fetch
from ..runtime.rest import RESTTransport
from ..utils.hashing import hash_bytes, verify_hash
from ..utils.retry import retry_async
from ..utils.urls import sanitize_url

logger = logging.getLogger(__name__)

_AUTH_LINK_FIELDS = ("type", "payload", "signature")


class ContentClient:
    """Client for one content server."""

    def __init__(
        self,
        content_url: str,
        origin: str,
        *,
        transport: RESTTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        fragment_policy: FragmentPolicy | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        """Initialize content client.

        Args:
            content_url: Content server URL (sanitized: https by default, no trailing slash)
            origin: Name of the application using the client, sent on deployments
            transport: Optional transport (default: a new RESTTransport)
            timeout: Default per-request timeout in seconds
            fragment_policy: URL length policy for id/pointer/cid queries
            concurrency: Maximum fragments fetched at once
        """
        self._content_url = sanitize_url(content_url)
        self._origin = origin
        self._transport = transport or RESTTransport(
            timeout=timeout, headers={"User-Agent": f"{USER_AGENT}/content"}
        )
        self._fragment_policy = fragment_policy
        self._concurrency = concurrency

    @property
    def content_url(self) -> str:
        return self._content_url

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> ContentClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # Building

    async def build_entity(
        self,
        entity_type: EntityType | str,
        pointers: list[str],
        files: Mapping[str, bytes] | None = None,
        metadata: Any = None,
        timestamp: int | None = None,
        options: RequestOptions | None = None,
    ) -> DeploymentPreparationData:
        """Build an entity from raw files.

        When no timestamp is given the server's current time is used.
        """
        if not pointers:
            raise ValidationError("All entities must have at least one pointer.")
        if timestamp is None:
            timestamp = (await self.fetch_content_status(options)).current_time
        return await build_entity(entity_type, pointers, files, metadata, timestamp)

    async def build_entity_without_new_files(
        self,
        entity_type: EntityType | str,
        pointers: list[str],
        hashes_by_key: Mapping[str, str] | None = None,
        metadata: Any = None,
        timestamp: int | None = None,
        options: RequestOptions | None = None,
    ) -> DeploymentPreparationData:
        """Build an entity that references already uploaded content only."""
        if not pointers:
            raise ValidationError("All entities must have at least one pointer.")
        if timestamp is None:
            timestamp = (await self.fetch_content_status(options)).current_time
        return build_entity_without_new_files(
            entity_type, pointers, hashes_by_key, metadata, timestamp
        )

    # Deploying

    async def deploy_entity(
        self,
        data: DeploymentData,
        fix: bool = False,
        options: RequestOptions | None = None,
    ) -> int:
        """Deploy a signed entity.

        Content already stored on the server is not uploaded again; the
        manifest always is.

        Returns:
            Creation timestamp reported by the server
        """
        available = await self._resolver(options).resolve(data.files.keys())
        files = select_files_to_upload(data, available)

        fields: list[tuple[str, str]] = [("entityId", data.entity_id)]
        for index, link in enumerate(data.auth_chain):
            for name in _AUTH_LINK_FIELDS:
                value = getattr(link, name)
                # Empty values are left out of the form (e.g. unsigned SIGNER links)
                if value:
                    fields.append((f"authChain[{index}][{name}]", value))

        logger.info(
            "deploying_entity",
            extra={
                "entity_id": data.entity_id,
                "files_total": len(data.files),
                "files_uploaded": len(files),
                "fix": fix,
            },
        )
        url = f"{self._content_url}/entities{'?fix=true' if fix else ''}"
        response = await self._transport.post_multipart(
            url,
            fields,
            files,
            options,
            headers={"x-upload-origin": self._origin},
        )
        return response["creationTimestamp"]

    # Entities

    async def fetch_entities_by_pointers(
        self,
        entity_type: EntityType | str,
        pointers: list[str],
        options: RequestOptions | None = None,
    ) -> list[Entity]:
        if not pointers:
            raise ValidationError("You must set at least one pointer.")
        return await self._fetch_entities(entity_type, "pointer", pointers, options)

    async def fetch_entities_by_ids(
        self,
        entity_type: EntityType | str,
        ids: list[str],
        options: RequestOptions | None = None,
    ) -> list[Entity]:
        if not ids:
            raise ValidationError("You must set at least one id.")
        return await self._fetch_entities(entity_type, "id", ids, options)

    async def fetch_entity_by_id(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        options: RequestOptions | None = None,
    ) -> Entity:
        """Fetch one entity.

        Raises:
            NotFoundError: If the server does not know the entity
        """
        entities = await self.fetch_entities_by_ids(entity_type, [entity_id], options)
        if not entities:
            raise NotFoundError(_type_value(entity_type), entity_id)
        return entities[0]

    async def fetch_audit_info(
        self,
        entity_type: EntityType | str,
        entity_id: str,
        options: RequestOptions | None = None,
    ) -> AuditInfo:
        response = await self._transport.fetch_json(
            f"{self._content_url}/audit/{_type_value(entity_type)}/{entity_id}", options
        )
        return AuditInfo.model_validate(response)

    async def fetch_content_status(self, options: RequestOptions | None = None) -> ServerStatus:
        response = await self._transport.fetch_json(f"{self._content_url}/status", options)
        return ServerStatus.model_validate(response)

    # Content

    async def download_content(
        self, content_hash: str, options: RequestOptions | None = None
    ) -> bytes:
        """Download content and check that it hashes to ``content_hash``.

        A hash mismatch (usually a truncated transfer) is retried like any
        transport failure.

        Raises:
            IntegrityError: If every attempt returned mismatching bytes
            TransportError: If the last attempt failed at the transport level
        """
        resolved = (options or RequestOptions()).with_defaults(DOWNLOAD_DEFAULTS)
        url = f"{self._content_url}/contents/{content_hash}"
        single_attempt = RequestOptions(timeout=resolved.timeout, attempts=1)

        async def download() -> bytes:
            content = await self._transport.fetch_buffer(url, single_attempt)
            if not verify_hash(content, content_hash):
                raise IntegrityError(content_hash, hash_bytes(content), self._content_url)
            return content

        return await retry_async(
            download,
            attempts=resolved.attempts or 1,
            wait_time=resolved.wait_time or 0.0,
            description=f"download {content_hash}",
        )

    async def pipe_content(
        self,
        content_hash: str,
        write: Callable[[bytes], Awaitable[None] | None],
        options: RequestOptions | None = None,
    ) -> dict[str, str]:
        """Stream content into ``write``.

        Returns:
            The response headers this client knows about, with canonical casing
        """
        headers = await self._transport.pipe(
            f"{self._content_url}/contents/{content_hash}", write, options
        )
        return _only_known_headers(headers)

    async def is_content_available(
        self, cids: Iterable[str], options: RequestOptions | None = None
    ) -> list[AvailableContent]:
        return await self._resolver(options).check(cids)

    # Deployments

    async def fetch_all_deployments(
        self,
        filters: DeploymentFilters,
        sort_by: DeploymentSorting | None = None,
        fields: frozenset[DeploymentField] = POINTERS_CONTENT_AND_METADATA,
        failure_policy: PartialFailurePolicy = PartialFailurePolicy.FAIL_FAST,
        error_listener: Callable[[Exception], None] | None = None,
        options: RequestOptions | None = None,
    ) -> list[Deployment]:
        """Fetch every deployment matching ``filters``.

        If the filters do not fit in one URL several queries are made; the
        results are deduplicated by entity id and, when ``sort_by`` names a
        field, sorted locally by it so split queries keep a stable order.

        Raises:
            ValidationError: If no narrowing filter is set
        """
        fetcher = self._deployments_fetcher(sort_by, failure_policy, error_listener)
        query_params = self._deployments_query_params(filters, sort_by, fields)
        return await fetcher.fetch_all(
            self._content_url, "/deployments", query_params, self._deployments_page(options)
        )

    async def iterate_deployments(
        self,
        filters: DeploymentFilters,
        sort_by: DeploymentSorting | None = None,
        fields: frozenset[DeploymentField] = POINTERS_CONTENT_AND_METADATA,
        failure_policy: PartialFailurePolicy = PartialFailurePolicy.FAIL_FAST,
        error_listener: Callable[[Exception], None] | None = None,
        options: RequestOptions | None = None,
    ) -> AsyncIterator[Deployment]:
        """Stream deployments as pages arrive, without local sorting."""
        fetcher = self._deployments_fetcher(None, failure_policy, error_listener)
        query_params = self._deployments_query_params(filters, sort_by, fields)
        async for deployment in fetcher.iterate(
            self._content_url, "/deployments", query_params, self._deployments_page(options)
        ):
            yield deployment

    # Internals

    def _resolver(self, options: RequestOptions | None) -> AvailabilityResolver:
        return AvailabilityResolver(
            lambda url: self._transport.fetch_json(url, options),
            self._content_url,
            policy=self._fragment_policy,
        )

    async def _fetch_entities(
        self,
        entity_type: EntityType | str,
        param: str,
        values: list[str],
        options: RequestOptions | None,
    ) -> list[Entity]:
        answers = await split_and_fetch(
            fetch_json=lambda url: self._transport.fetch_json(url, options),
            base_url=self._content_url,
            path=f"/entities/{_type_value(entity_type)}",
            query_params=(param, values),
            unique_by="id",
            policy=self._fragment_policy,
            concurrency=self._concurrency,
        )
        return [Entity.model_validate(answer) for answer in answers]

    def _deployments_query_params(
        self,
        filters: DeploymentFilters,
        sort_by: DeploymentSorting | None,
        fields: frozenset[DeploymentField],
    ) -> dict[str, list[str]]:
        if not filters.is_narrowing():
            raise ValidationError(
                "When fetching deployments, you must set at least one filter "
                "that isn't 'onlyCurrentlyPointed'"
            )
        query_params = filters.to_query_params()
        if sort_by is not None:
            query_params.update(sort_by.to_query_params())
        if fields:
            query_params["fields"] = [DeploymentField.to_query_value(fields)]
        return query_params

    def _deployments_fetcher(
        self,
        sort_by: DeploymentSorting | None,
        failure_policy: PartialFailurePolicy,
        error_listener: Callable[[Exception], None] | None,
    ) -> PaginatedFetcher[Deployment]:
        policy = replace(
            self._fragment_policy or FragmentPolicy(),
            reserved_params=DEPLOYMENTS_RESERVED_PARAMS,
        )
        local_sort: Callable[[Deployment], int] | None = None
        if sort_by is not None and sort_by.field is SortingField.ENTITY_TIMESTAMP:
            local_sort = lambda deployment: deployment.entity_timestamp  # noqa: E731
        elif sort_by is not None and sort_by.field is SortingField.LOCAL_TIMESTAMP:
            local_sort = lambda deployment: deployment.sort_timestamp  # noqa: E731
        return PaginatedFetcher(
            unique_by="entity_id",
            sort_by=local_sort,
            policy=policy,
            offset_param=None,
            failure_policy=failure_policy,
            error_listener=error_listener,
            concurrency=self._concurrency,
            reverse=sort_by is not None and sort_by.order is SortingOrder.DESCENDING,
        )

    def _deployments_page(
        self, options: RequestOptions | None
    ) -> Callable[[str], Awaitable[PartialListing[Deployment]]]:
        resolved = (options or RequestOptions()).with_defaults(LISTING_DEFAULTS)

        async def fetch_page(url: str) -> PartialListing[Deployment]:
            response = await self._transport.fetch_json(url, resolved)
            return PartialListing.from_response(response, "deployments", Deployment.model_validate)

        return fetch_page


def _type_value(entity_type: EntityType | str) -> str:
    return entity_type.value if isinstance(entity_type, EntityType) else entity_type


def _only_known_headers(headers: Mapping[str, str]) -> dict[str, str]:
    canonical = {name.lower(): name for name in KNOWN_HEADERS}
    return {
        canonical[name.lower()]: value
        for name, value in headers.items()
        if name.lower() in canonical
    }
