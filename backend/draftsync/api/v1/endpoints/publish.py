"""Publish API endpoints.

Publishing copies draft rows onto the published side; reverting copies the
published rows back over the drafts. A publish call always answers 200 with
a result object: failed steps are reported in ``errors``, not as HTTP errors.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Path

from draftsync import schemas
from draftsync.api.deps import Inject
from draftsync.domains.publishing.protocols import (
    CollectionPublisherProtocol,
    OrphanReconcilerProtocol,
    PublishCoordinatorProtocol,
    RevertCoordinatorProtocol,
)
from draftsync.domains.publishing.tables import TABLES

router = APIRouter()


@router.post(
    "",
    response_model=schemas.PublishResult,
    response_model_by_alias=True,
    summary="Publish drafts",
)
async def publish(
    scope: schemas.PublishScope,
    coordinator: PublishCoordinatorProtocol = Inject(PublishCoordinatorProtocol),
) -> schemas.PublishResult:
    """Publish the given scope, or everything needing publishing when ``publishAll`` is set."""
    return await coordinator.publish(scope)


@router.post(
    "/revert",
    response_model=schemas.RevertResult,
    response_model_by_alias=True,
    summary="Revert drafts to the published state",
    responses={400: {"description": "The site has never been published"}},
)
async def revert(
    coordinator: RevertCoordinatorProtocol = Inject(RevertCoordinatorProtocol),
) -> schemas.RevertResult:
    """Discard every draft change made since the last publish."""
    return await coordinator.revert()


@router.get(
    "/collections/{collection_id}/publishable-count",
    response_model=schemas.PublishableCount,
    response_model_by_alias=True,
)
async def get_publishable_count(
    collection_id: UUID = Path(..., description="Draft collection id"),
    publisher: CollectionPublisherProtocol = Inject(CollectionPublisherProtocol),
) -> schemas.PublishableCount:
    """Number of items in the collection waiting to be published."""
    count = await publisher.get_publishable_count(collection_id)
    return schemas.PublishableCount(collection_id=collection_id, count=count)


@router.get(
    "/collections/{collection_id}/needs-publishing",
    response_model=schemas.NeedsPublishing,
    response_model_by_alias=True,
)
async def needs_publishing(
    collection_id: UUID = Path(..., description="Draft collection id"),
    publisher: CollectionPublisherProtocol = Inject(CollectionPublisherProtocol),
) -> schemas.NeedsPublishing:
    """Whether the collection, its fields or items differ from the published copy."""
    needed = await publisher.needs_publishing(collection_id)
    return schemas.NeedsPublishing(collection_id=collection_id, needs_publishing=needed)


@router.get(
    "/deleted-drafts/{table}",
    response_model=schemas.DeletedDraftCount,
    response_model_by_alias=True,
    responses={404: {"description": "Unknown table"}},
)
async def count_deleted_drafts(
    table: str = Path(..., description="Publishable table name, e.g. pages"),
    reconciler: OrphanReconcilerProtocol = Inject(OrphanReconcilerProtocol),
) -> schemas.DeletedDraftCount:
    """Number of soft-deleted drafts the next publish will remove."""
    if table not in TABLES:
        raise HTTPException(status_code=404, detail=f"Unknown publishable table: {table}")
    count = await reconciler.count_deleted_drafts(table)
    return schemas.DeletedDraftCount(table=table, count=count)
