"""Protocols for the publishing domain."""

from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence
from uuid import UUID

from draftsync import schemas
from draftsync.domains.publishing.types import (
    BatchPublishResult,
    CleanupResult,
    CollectionPublishRequest,
    CollectionPublishResult,
    ExcludeByColumn,
    PreserveFilter,
    SyncDirection,
)


class RowSynchronizerProtocol(Protocol):
    """Copies active rows from one side of the draft/published pair to the other."""

    async def sync_rows(
        self,
        table: str,
        direction: SyncDirection,
        ids: Optional[Iterable[Any]] = None,
        exclude_columns: Sequence[str] = (),
    ) -> int:
        """Copy active source rows (optionally only ``ids``) onto the target side."""
        ...

    async def sync_rows_by_parent(
        self,
        table: str,
        direction: SyncDirection,
        parent_column: str,
        parent_ids: Iterable[Any],
        exclude_columns: Sequence[str] = (),
    ) -> int:
        """Copy active source rows whose ``parent_column`` is in ``parent_ids``."""
        ...


class OrphanReconcilerProtocol(Protocol):
    """Removes target-side rows that lost their active source counterpart."""

    async def cleanup_orphans(
        self,
        table: str,
        direction: SyncDirection,
        preserve_filter: Optional[PreserveFilter] = None,
        exclude_by_column: Optional[ExcludeByColumn] = None,
        collect_columns: Sequence[str] = (),
    ) -> CleanupResult:
        """Delete orphans, honouring preservation and exclusion rules."""
        ...

    async def cleanup_orphaned_child_rows(
        self,
        table: str,
        direction: SyncDirection,
        parent_column: str,
        parent_table: str,
    ) -> int:
        """Delete target child rows whose parent has no active source row."""
        ...

    async def count_deleted_drafts(self, table: str) -> int:
        """Count soft-deleted draft rows of ``table``."""
        ...


class HierarchyPublisherProtocol(Protocol):
    """Publishes a tree-shaped table parents first."""

    async def publish_hierarchy(self, ids: Optional[Iterable[UUID]] = None) -> int:
        """Publish the given rows (all when omitted). Returns rows written."""
        ...


class CollectionPublisherProtocol(Protocol):
    """Publishes collections with their fields, items and values."""

    async def publish_collection(
        self, collection_id: UUID, item_ids: Optional[List[UUID]] = None
    ) -> CollectionPublishResult:
        """Publish one collection and the selected (or needing) items."""
        ...

    async def publish_collections(
        self, requests: Sequence[CollectionPublishRequest]
    ) -> BatchPublishResult:
        """Publish several collections sequentially."""
        ...

    async def get_publishable_count(self, collection_id: UUID) -> int:
        """Number of items in the collection that need publishing."""
        ...

    async def get_publishable_counts(self, collection_ids: Iterable[UUID]) -> Dict[UUID, int]:
        """Publishable item counts keyed by collection id."""
        ...

    async def needs_publishing(self, collection_id: UUID) -> bool:
        """True when the collection or any of its items needs publishing."""
        ...

    async def group_items_by_collection(self, item_ids: Iterable[UUID]) -> Dict[UUID, List[UUID]]:
        """Group draft item ids by their collection."""
        ...

    async def cleanup_deleted_collections(self) -> int:
        """Purge every soft-deleted draft collection on both sides."""
        ...


class PublishCoordinatorProtocol(Protocol):
    """Top-level publish entry point."""

    async def publish(self, scope: schemas.PublishScope) -> schemas.PublishResult:
        """Run a publish session. Never raises for step failures."""
        ...


class RevertCoordinatorProtocol(Protocol):
    """Restores drafts to the last published state."""

    async def revert(self) -> schemas.RevertResult:
        """Run a revert session."""
        ...
