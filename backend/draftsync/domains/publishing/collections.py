"""Collection publisher (entity-attribute-value).

A collection is published as a fixed pipeline of stages, each receiving the
state built by the previous one:

    metadata -> fields -> items -> values -> cleanup

Fields and items reference their collection, and values reference both an
item and a field, on the same side of the draft/published pair. Stages run
in this order so every published row points at an existing published parent.
"""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set
from uuid import UUID

from draftsync.core.exceptions import (
    CollectionItemNotFoundException,
    CollectionNotFoundException,
)
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.fingerprint import ContentFingerprinter, fingerprinter
from draftsync.domains.publishing.protocols import CollectionPublisherProtocol
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.row_sync import to_target_row
from draftsync.domains.publishing.tables import (
    COLLECTION_FIELDS,
    COLLECTION_ITEM_VALUES,
    COLLECTION_ITEMS,
    COLLECTIONS,
    get_table,
)
from draftsync.domains.publishing.types import (
    BatchPublishResult,
    CollectionPublishRequest,
    CollectionPublishResult,
    StepTiming,
    SyncDirection,
)

DRAFT = RowFilter.side(False)
PUBLISHED = RowFilter.side(True)

Row = Dict[str, Any]


@dataclass
class _ItemState:
    """Draft and published items and values of one collection."""

    draft_items: Dict[UUID, Row] = field(default_factory=dict)
    published_items: Dict[UUID, Row] = field(default_factory=dict)
    # Active draft values of active fields, by item
    draft_values: Dict[UUID, List[Row]] = field(default_factory=dict)
    published_values: Dict[UUID, List[Row]] = field(default_factory=dict)

    def item_changed(self, item_id: UUID) -> bool:
        draft = self.draft_items[item_id]
        published = self.published_items.get(item_id)
        if published is None:
            return True
        return any(
            draft.get(name) != published.get(name) for name in ("manual_order", "is_publishable")
        )

    def values_changed(self, item_id: UUID) -> bool:
        draft = {v["field_id"]: v.get("value") for v in self.draft_values.get(item_id, [])}
        published = {v["field_id"]: v.get("value") for v in self.published_values.get(item_id, [])}
        return draft != published

    def needs_publishing(self, item_id: UUID) -> bool:
        if not self.draft_items[item_id].get("is_publishable", True):
            # Unpublishing only matters while a published copy exists
            return item_id in self.published_items
        return self.item_changed(item_id) or self.values_changed(item_id)

    def unpublished_ids(self) -> List[UUID]:
        return [item_id for item_id in self.draft_items if self.needs_publishing(item_id)]


@dataclass
class _PublishContext:
    """State threaded through the pipeline stages of one collection."""

    collection_id: UUID
    item_ids: Optional[List[UUID]]
    result: CollectionPublishResult
    draft_collection: Row
    active_field_ids: Set[UUID] = field(default_factory=set)
    state: _ItemState = field(default_factory=_ItemState)
    publishable_ids: List[UUID] = field(default_factory=list)


class CollectionPublisher(CollectionPublisherProtocol):
    """Publishes collections with their fields, items and values."""

    def __init__(
        self,
        store: RowStore,
        access: Optional[RowAccess] = None,
        hasher: Optional[ContentFingerprinter] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with the row store (and optional collaborators)."""
        self._access = access or RowAccess(store)
        self._hasher = hasher or fingerprinter
        self._logger = log or logger.with_prefix("[Collections] ")

    # ------------------------------------------------------------------
    # Public API (protocol surface)
    # ------------------------------------------------------------------

    async def publish_collection(
        self, collection_id: UUID, item_ids: Optional[List[UUID]] = None
    ) -> CollectionPublishResult:
        """Publish one collection.

        Args:
            collection_id: Draft collection to publish.
            item_ids: Items to publish. ``None`` publishes every item that
                needs publishing.

        Returns:
            CollectionPublishResult with per-level counts and timing.

        Raises:
            CollectionNotFoundException: No draft row for ``collection_id``.
            CollectionItemNotFoundException: An item id is unknown or belongs
                to another collection.
        """
        draft = await self._access.fetch_one(COLLECTIONS, DRAFT.where_eq("id", collection_id))
        if draft is None:
            raise CollectionNotFoundException(f"Collection {collection_id} not found")

        result = CollectionPublishResult(collection_id=collection_id)
        if draft.get("deleted_at") is not None:
            await self._purge_collection(collection_id)
            result.purged = True
            result.success = True
            return result

        if item_ids is not None:
            await self._validate_item_ids(collection_id, item_ids)

        ctx = _PublishContext(
            collection_id=collection_id,
            item_ids=item_ids,
            result=result,
            draft_collection=draft,
        )
        stages = (
            ("collections", self._publish_metadata),
            ("fields", self._publish_fields),
            ("items", self._publish_items),
            ("values", self._publish_values),
            ("cleanup", self._cleanup_deleted),
        )
        for name, stage in stages:
            start = time.monotonic()
            count = await stage(ctx)
            result.timing[name] = StepTiming(
                duration_ms=int((time.monotonic() - start) * 1000), count=count
            )

        result.success = True
        self._logger.info(
            f"Published collection {collection_id}: fields={result.fields_count} "
            f"items={result.items_count} values={result.values_count} "
            f"deleted_items={result.items_deleted} deleted_fields={result.fields_deleted}"
        )
        return result

    async def publish_collections(
        self, requests: Sequence[CollectionPublishRequest]
    ) -> BatchPublishResult:
        """Publish several collections one after another.

        A failing collection is recorded in its own result; the rest still run.
        """
        batch = BatchPublishResult()
        for request in requests:
            batch.summary.total += 1
            try:
                result = await self.publish_collection(request.collection_id, request.item_ids)
            except Exception as e:
                self._logger.error(f"Failed to publish collection {request.collection_id}: {e}")
                result = CollectionPublishResult(
                    collection_id=request.collection_id, success=False, errors=[str(e)]
                )
            if result.success:
                batch.summary.succeeded += 1
            else:
                batch.summary.failed += 1
            batch.results.append(result)
        return batch

    async def get_publishable_count(self, collection_id: UUID) -> int:
        """Number of items needing publishing; 0 when the lookup fails."""
        try:
            fields = await self._active_field_ids(collection_id)
            state = await self._load_item_state(collection_id, fields)
            return len(state.unpublished_ids())
        except Exception as e:
            self._logger.error(f"Failed to count publishable items of {collection_id}: {e}")
            return 0

    async def get_publishable_counts(self, collection_ids: Iterable[UUID]) -> Dict[UUID, int]:
        """Publishable item counts keyed by collection id."""
        return {cid: await self.get_publishable_count(cid) for cid in collection_ids}

    async def needs_publishing(self, collection_id: UUID) -> bool:
        """True when the collection, a field or an item differs from its published copy."""
        draft = await self._access.fetch_one(COLLECTIONS, DRAFT.where_eq("id", collection_id))
        if draft is None:
            return False
        published = await self._access.fetch_one(
            COLLECTIONS, PUBLISHED.where_eq("id", collection_id)
        )
        if draft.get("deleted_at") is not None:
            return True
        if published is None or self._hasher.differs(COLLECTIONS, draft, published):
            return True

        scope = DRAFT.where_eq("collection_id", collection_id)
        drafts = await self._access.fetch_all(COLLECTION_FIELDS, scope)
        if any(row.get("deleted_at") is not None for row in drafts):
            return True
        published_fields = await self._published_by_id(COLLECTION_FIELDS, collection_id)
        if any(self._field_changed(row, published_fields.get(row["id"])) for row in drafts):
            return True

        deleted_items = await self._access.fetch_all(
            COLLECTION_ITEMS, scope.where_not_null("deleted_at"), columns=("id",)
        )
        if deleted_items:
            return True
        return await self.get_publishable_count(collection_id) > 0

    async def group_items_by_collection(self, item_ids: Iterable[UUID]) -> Dict[UUID, List[UUID]]:
        """Group draft item ids by collection, keeping the given order."""
        ids = list(item_ids)
        rows = await self._access.fetch_by_id(COLLECTION_ITEMS, DRAFT, ids)
        grouped: Dict[UUID, List[UUID]] = defaultdict(list)
        for item_id in ids:
            row = rows.get(item_id)
            if row is not None and item_id not in grouped[row["collection_id"]]:
                grouped[row["collection_id"]].append(item_id)
        return dict(grouped)

    async def cleanup_deleted_collections(self) -> int:
        """Purge every soft-deleted draft collection on both sides."""
        deleted = await self._access.fetch_all(
            COLLECTIONS, DRAFT.where_not_null("deleted_at"), columns=("id",)
        )
        for row in deleted:
            await self._purge_collection(row["id"])
        if deleted:
            self._logger.info(f"Purged {len(deleted)} deleted collections")
        return len(deleted)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def _publish_metadata(self, ctx: _PublishContext) -> int:
        """Upsert the published collection row when name, sorting or order differ."""
        published = await self._access.fetch_one(
            COLLECTIONS, PUBLISHED.where_eq("id", ctx.collection_id)
        )
        if (
            published is not None
            and published.get("deleted_at") is None
            and not self._hasher.differs(COLLECTIONS, ctx.draft_collection, published)
        ):
            return 0
        await self._access.upsert_batched(
            COLLECTIONS, [to_target_row(ctx.draft_collection, SyncDirection.PUBLISH)]
        )
        ctx.result.collection = True
        return 1

    async def _publish_fields(self, ctx: _PublishContext) -> int:
        """Upsert active fields whose comparable attributes differ."""
        drafts = await self._access.fetch_all(
            COLLECTION_FIELDS, DRAFT.active().where_eq("collection_id", ctx.collection_id)
        )
        ctx.active_field_ids = {row["id"] for row in drafts}
        published = await self._published_by_id(COLLECTION_FIELDS, ctx.collection_id)
        changed = [
            to_target_row(row, SyncDirection.PUBLISH)
            for row in drafts
            if self._field_changed(row, published.get(row["id"]))
        ]
        if changed:
            ctx.result.fields_count = await self._access.upsert_batched(COLLECTION_FIELDS, changed)
        return ctx.result.fields_count

    async def _publish_items(self, ctx: _PublishContext) -> int:
        """Resolve the target items, unpublish excluded ones and upsert changed ones."""
        ctx.state = await self._load_item_state(ctx.collection_id, ctx.active_field_ids)
        state = ctx.state

        if ctx.item_ids is None:
            targets = state.unpublished_ids()
        else:
            targets = [item_id for item_id in ctx.item_ids if item_id in state.draft_items]

        excluded = [
            item_id
            for item_id in targets
            if not state.draft_items[item_id].get("is_publishable", True)
            and item_id in state.published_items
        ]
        if excluded:
            # Cascades to the published values of these items
            ctx.result.items_deleted += await self._access.delete_in(
                COLLECTION_ITEMS, PUBLISHED, "id", excluded
            )

        ctx.publishable_ids = [
            item_id
            for item_id in targets
            if state.draft_items[item_id].get("is_publishable", True)
        ]
        changed = [
            to_target_row(state.draft_items[item_id], SyncDirection.PUBLISH)
            for item_id in ctx.publishable_ids
            if state.item_changed(item_id)
        ]
        if changed:
            ctx.result.items_count = await self._access.upsert_batched(COLLECTION_ITEMS, changed)
        return ctx.result.items_count

    async def _publish_values(self, ctx: _PublishContext) -> int:
        """Upsert differing values of the publishable target items and drop stale ones."""
        state = ctx.state
        changed: List[Row] = []
        stale: List[UUID] = []
        for item_id in ctx.publishable_ids:
            published = {v["id"]: v for v in state.published_values.get(item_id, [])}
            drafts = state.draft_values.get(item_id, [])
            for value in drafts:
                current = published.get(value["id"])
                if current is None or any(
                    value.get(name) != current.get(name) for name in ("value", "field_id")
                ):
                    changed.append(to_target_row(value, SyncDirection.PUBLISH))
            live = {v["id"] for v in drafts}
            stale.extend(value_id for value_id in published if value_id not in live)

        if stale:
            ctx.result.values_deleted += await self._access.delete_in(
                COLLECTION_ITEM_VALUES, PUBLISHED, "id", stale
            )
        if changed:
            ctx.result.values_count = await self._access.upsert_batched(
                COLLECTION_ITEM_VALUES, changed
            )
        return ctx.result.values_count

    async def _cleanup_deleted(self, ctx: _PublishContext) -> int:
        """Hard-delete soft-deleted items and fields on both sides."""
        scope = DRAFT.where_eq("collection_id", ctx.collection_id).where_not_null("deleted_at")

        items = [
            row["id"]
            for row in await self._access.fetch_all(COLLECTION_ITEMS, scope, columns=("id",))
        ]
        if items:
            # Values go with their items through the cascade
            await self._access.delete_in(COLLECTION_ITEMS, PUBLISHED, "id", items)
            ctx.result.items_deleted += await self._access.delete_in(
                COLLECTION_ITEMS, DRAFT, "id", items
            )

        fields = [
            row["id"]
            for row in await self._access.fetch_all(COLLECTION_FIELDS, scope, columns=("id",))
        ]
        if fields:
            for side in (PUBLISHED, DRAFT):
                ctx.result.values_deleted += await self._access.delete_in(
                    COLLECTION_ITEM_VALUES, side, "field_id", fields
                )
            await self._access.delete_in(COLLECTION_FIELDS, PUBLISHED, "id", fields)
            ctx.result.fields_deleted += await self._access.delete_in(
                COLLECTION_FIELDS, DRAFT, "id", fields
            )
        return len(items) + len(fields)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _validate_item_ids(self, collection_id: UUID, item_ids: List[UUID]) -> None:
        found = await self._access.fetch_by_id(COLLECTION_ITEMS, DRAFT, item_ids)
        for item_id in item_ids:
            row = found.get(item_id)
            if row is None or row.get("collection_id") != collection_id:
                raise CollectionItemNotFoundException(
                    f"Item {item_id} not found in collection {collection_id}"
                )

    async def _purge_collection(self, collection_id: UUID) -> None:
        """Hard-delete both copies; fields, items and values go through the cascade."""
        for side in (PUBLISHED, DRAFT):
            await self._access.store.delete(COLLECTIONS, side.where_eq("id", collection_id))
        self._logger.info(f"Purged deleted collection {collection_id}")

    async def _active_field_ids(self, collection_id: UUID) -> Set[UUID]:
        rows = await self._access.fetch_all(
            COLLECTION_FIELDS,
            DRAFT.active().where_eq("collection_id", collection_id),
            columns=("id",),
        )
        return {row["id"] for row in rows}

    async def _published_by_id(self, table: str, collection_id: UUID) -> Dict[UUID, Row]:
        rows = await self._access.fetch_all(
            table, PUBLISHED.where_eq("collection_id", collection_id)
        )
        return {row["id"]: row for row in rows}

    async def _load_item_state(
        self, collection_id: UUID, active_field_ids: Set[UUID]
    ) -> _ItemState:
        drafts = await self._access.fetch_all(
            COLLECTION_ITEMS, DRAFT.active().where_eq("collection_id", collection_id)
        )
        state = _ItemState(
            draft_items={row["id"]: row for row in drafts},
            published_items=await self._published_by_id(COLLECTION_ITEMS, collection_id),
        )
        item_ids = list(state.draft_items)
        for value in await self._access.fetch_in(
            COLLECTION_ITEM_VALUES, DRAFT.active(), "item_id", item_ids
        ):
            if value["field_id"] in active_field_ids:
                state.draft_values.setdefault(value["item_id"], []).append(value)
        for value in await self._access.fetch_in(
            COLLECTION_ITEM_VALUES, PUBLISHED, "item_id", item_ids
        ):
            state.published_values.setdefault(value["item_id"], []).append(value)
        return state

    @staticmethod
    def _field_changed(draft: Row, published: Optional[Row]) -> bool:
        """Shallow per-attribute comparison; fields are few and flat."""
        if published is None or published.get("deleted_at") is not None:
            return True
        return any(
            draft.get(name) != published.get(name)
            for name in get_table(COLLECTION_FIELDS).hash_fields
        )
