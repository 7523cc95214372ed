"""Fake collection publisher for testing."""

from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from draftsync.core.exceptions import CollectionNotFoundException
from draftsync.domains.publishing.types import (
    BatchPublishResult,
    CollectionPublishRequest,
    CollectionPublishResult,
)


class FakeCollectionPublisher:
    """In-memory fake for CollectionPublisherProtocol."""

    def __init__(self) -> None:
        """Initialize with empty state."""
        self._calls: list[tuple] = []
        self._counts: Dict[UUID, int] = {}
        self._item_collections: Dict[UUID, UUID] = {}
        self._should_raise: Optional[Exception] = None

    def seed(self, collection_id: UUID, publishable: int = 0, item_ids: Iterable[UUID] = ()) -> None:
        """Register a collection with its publishable count and items."""
        self._counts[collection_id] = publishable
        for item_id in item_ids:
            self._item_collections[item_id] = collection_id

    def set_error(self, error: Exception) -> None:
        """Make publish calls raise this error."""
        self._should_raise = error

    async def publish_collection(
        self, collection_id: UUID, item_ids: Optional[List[UUID]] = None
    ) -> CollectionPublishResult:
        """Record call and report the seeded publishable count as published."""
        self._calls.append(("publish_collection", collection_id, item_ids))
        if self._should_raise:
            raise self._should_raise
        if collection_id not in self._counts:
            raise CollectionNotFoundException(f"Collection {collection_id} not found")
        count = len(item_ids) if item_ids is not None else self._counts[collection_id]
        self._counts[collection_id] = 0
        return CollectionPublishResult(
            collection_id=collection_id, success=True, collection=True, items_count=count
        )

    async def publish_collections(
        self, requests: Sequence[CollectionPublishRequest]
    ) -> BatchPublishResult:
        """Publish each request, capturing failures per collection."""
        self._calls.append(("publish_collections", list(requests)))
        batch = BatchPublishResult()
        for request in requests:
            batch.summary.total += 1
            try:
                result = await self.publish_collection(request.collection_id, request.item_ids)
                batch.summary.succeeded += 1
            except Exception as e:
                result = CollectionPublishResult(
                    collection_id=request.collection_id, errors=[str(e)]
                )
                batch.summary.failed += 1
            batch.results.append(result)
        return batch

    async def get_publishable_count(self, collection_id: UUID) -> int:
        """Return the seeded count."""
        self._calls.append(("get_publishable_count", collection_id))
        return self._counts.get(collection_id, 0)

    async def get_publishable_counts(self, collection_ids: Iterable[UUID]) -> Dict[UUID, int]:
        """Return seeded counts keyed by collection id."""
        return {cid: self._counts.get(cid, 0) for cid in collection_ids}

    async def needs_publishing(self, collection_id: UUID) -> bool:
        """True when the seeded count is positive."""
        self._calls.append(("needs_publishing", collection_id))
        return self._counts.get(collection_id, 0) > 0

    async def group_items_by_collection(self, item_ids: Iterable[UUID]) -> Dict[UUID, List[UUID]]:
        """Group seeded items by their collection."""
        grouped: Dict[UUID, List[UUID]] = {}
        for item_id in item_ids:
            collection_id = self._item_collections.get(item_id)
            if collection_id is not None:
                grouped.setdefault(collection_id, []).append(item_id)
        return grouped

    async def cleanup_deleted_collections(self) -> int:
        """Record call; nothing to clean."""
        self._calls.append(("cleanup_deleted_collections",))
        return 0
