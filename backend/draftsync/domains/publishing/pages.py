"""Page publisher.

Pages and their layer trees are compared hash-to-hash: the draft's stored
``content_hash`` (or a fingerprint computed on the fly for legacy rows) is
checked against the published copy, and the hash is copied verbatim when
the page is written.
"""

import time
from typing import Any, Dict, Iterable, List, Optional, Set
from uuid import UUID

from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.fingerprint import ContentFingerprinter, fingerprinter
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.row_sync import to_target_row
from draftsync.domains.publishing.tables import PAGE_FOLDERS, PAGE_LAYERS, PAGES
from draftsync.domains.publishing.types import PagePublishResult, SyncDirection

DRAFT = RowFilter.side(False)
PUBLISHED = RowFilter.side(True)

# Where a page sits in the tree; not part of its content fingerprint
PLACEMENT_FIELDS = ("page_folder_id", "order", "depth")

Row = Dict[str, Any]


class PagePublisher:
    """Publishes pages and their ``page_layers`` rows."""

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
        self._logger = log or logger.with_prefix("[Pages] ")

    async def publish_pages(self, page_ids: Iterable[UUID]) -> PagePublishResult:
        """Publish the given draft pages and their layers.

        Soft-deleted pages in scope lose their published copy (and, through
        the cascade, its layers). Unchanged pages and layers are not written.
        """
        ids = list(dict.fromkeys(page_ids))
        result = PagePublishResult()
        if not ids:
            return result

        start = time.monotonic()
        drafts = await self._access.fetch_in(PAGES, DRAFT, "id", ids)
        active = [row for row in drafts if row.get("deleted_at") is None]
        deleted = [row["id"] for row in drafts if row.get("deleted_at") is not None]

        if deleted:
            result.deleted = await self._access.delete_in(PAGES, PUBLISHED, "id", deleted)

        published = await self._access.fetch_by_id(PAGES, PUBLISHED, [r["id"] for r in active])
        changed = [
            to_target_row(row, SyncDirection.PUBLISH)
            for row in active
            if self._page_changed(row, published.get(row["id"]))
        ]
        if changed:
            result.count = await self._access.upsert_batched(PAGES, changed)
        result.pages_duration_ms = int((time.monotonic() - start) * 1000)

        start = time.monotonic()
        result.layers_count = await self._publish_layers([row["id"] for row in active])
        result.layers_duration_ms = int((time.monotonic() - start) * 1000)

        self._logger.info(
            f"Published {result.count} pages, {result.layers_count} layer rows, "
            f"removed {result.deleted}"
        )
        return result

    async def get_unpublished_page_ids(self) -> List[UUID]:
        """Draft pages whose page row or layers differ from the published copy.

        Soft-deleted drafts that still have a published copy are included so
        the publish pass removes that copy.
        """
        drafts = await self._access.fetch_all(PAGES, DRAFT)
        published = {row["id"]: row for row in await self._access.fetch_all(PAGES, PUBLISHED)}

        pending: List[UUID] = []
        active_ids: List[UUID] = []
        for row in drafts:
            if row.get("deleted_at") is not None:
                if row["id"] in published:
                    pending.append(row["id"])
                continue
            active_ids.append(row["id"])
            if self._page_changed(row, published.get(row["id"])):
                pending.append(row["id"])

        layer_changes = await self._pages_with_changed_layers(active_ids)
        pending.extend(page_id for page_id in active_ids if page_id in layer_changes)
        return list(dict.fromkeys(pending))

    async def collect_ancestor_folder_ids(self, page_ids: Iterable[UUID]) -> Set[UUID]:
        """Walk ``page_folder_id`` upward from each active draft page.

        The walk stops at a missing or soft-deleted folder.
        """
        ids = list(page_ids)
        if not ids:
            return set()
        pages = await self._access.fetch_in(
            PAGES, DRAFT.active(), "id", ids, columns=("id", "page_folder_id")
        )
        folders = {
            row["id"]: row
            for row in await self._access.fetch_all(
                PAGE_FOLDERS, DRAFT.active(), columns=("id", "page_folder_id")
            )
        }

        ancestors: Set[UUID] = set()
        for page in pages:
            folder_id = page.get("page_folder_id")
            while folder_id is not None and folder_id not in ancestors:
                folder = folders.get(folder_id)
                if folder is None:
                    break
                ancestors.add(folder_id)
                folder_id = folder.get("page_folder_id")
        return ancestors

    async def _publish_layers(self, page_ids: List[UUID]) -> int:
        """Copy changed layer rows of the given pages and drop stale published ones."""
        if not page_ids:
            return 0
        drafts = await self._access.fetch_in(PAGE_LAYERS, DRAFT.active(), "page_id", page_ids)
        published = {
            row["id"]: row
            for row in await self._access.fetch_in(PAGE_LAYERS, PUBLISHED, "page_id", page_ids)
        }

        live = {row["id"] for row in drafts}
        stale = [row_id for row_id in published if row_id not in live]
        if stale:
            await self._access.delete_in(PAGE_LAYERS, PUBLISHED, "id", stale)

        changed = [
            to_target_row(row, SyncDirection.PUBLISH)
            for row in drafts
            if self._layers_changed(row, published.get(row["id"]))
        ]
        if not changed:
            return 0
        return await self._access.upsert_batched(PAGE_LAYERS, changed)

    async def _pages_with_changed_layers(self, page_ids: List[UUID]) -> Set[UUID]:
        if not page_ids:
            return set()
        drafts = await self._access.fetch_in(PAGE_LAYERS, DRAFT.active(), "page_id", page_ids)
        published = {
            row["id"]: row
            for row in await self._access.fetch_in(PAGE_LAYERS, PUBLISHED, "page_id", page_ids)
        }
        changed = {
            row["page_id"] for row in drafts if self._layers_changed(row, published.get(row["id"]))
        }
        live = {row["id"] for row in drafts}
        changed.update(row["page_id"] for row_id, row in published.items() if row_id not in live)
        return changed

    def _page_changed(self, draft: Row, published: Optional[Row]) -> bool:
        if published is None or published.get("deleted_at") is not None:
            return True
        if self._hasher.differs(PAGES, draft, published):
            return True
        return any(draft.get(name) != published.get(name) for name in PLACEMENT_FIELDS)

    def _layers_changed(self, draft: Row, published: Optional[Row]) -> bool:
        if published is None or published.get("deleted_at") is not None:
            return True
        if draft.get("page_id") != published.get("page_id"):
            return True
        return self._hasher.differs(PAGE_LAYERS, draft, published)
