"""Publisher for flat hashed tables (components, layer styles)."""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.fingerprint import ContentFingerprinter, fingerprinter
from draftsync.domains.publishing.orphans import OrphanReconciler
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.row_sync import to_target_row
from draftsync.domains.publishing.tables import get_table
from draftsync.domains.publishing.types import SyncDirection

DRAFT = RowFilter.side(False)
PUBLISHED = RowFilter.side(True)


class EntityPublisher:
    """Hash-diff publisher for one table without hierarchy."""

    def __init__(
        self,
        store: RowStore,
        table: str,
        access: Optional[RowAccess] = None,
        reconciler: Optional[OrphanReconciler] = None,
        hasher: Optional[ContentFingerprinter] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize for ``table``."""
        get_table(table)
        self.table = table
        self._access = access or RowAccess(store)
        self._reconciler = reconciler or OrphanReconciler(store, self._access)
        self._hasher = hasher or fingerprinter
        self._logger = log or logger.with_prefix(f"[{table}] ")

    async def publish(self, ids: Iterable[UUID]) -> int:
        """Publish the given active drafts that differ from their published copy."""
        id_list = list(ids)
        if not id_list:
            return 0
        drafts = await self._access.fetch_in(self.table, DRAFT.active(), "id", id_list)
        published = await self._access.fetch_by_id(self.table, PUBLISHED, id_list)
        changed = [
            to_target_row(row, SyncDirection.PUBLISH)
            for row in drafts
            if self._changed(row, published.get(row["id"]))
        ]
        if not changed:
            return 0
        count = await self._access.upsert_batched(self.table, changed)
        self._logger.info(f"Published {count} {self.table} rows")
        return count

    async def publish_all(self) -> Tuple[int, int]:
        """Publish every changed draft and remove published rows without an active draft.

        Returns:
            ``(published, deleted)``
        """
        count = await self.publish(await self.get_unpublished_ids())
        cleanup = await self._reconciler.cleanup_orphans(self.table, SyncDirection.PUBLISH)
        return count, cleanup.deleted

    async def get_unpublished_ids(self) -> List[UUID]:
        """Active drafts with no published copy or a differing fingerprint."""
        drafts = await self._access.fetch_all(self.table, DRAFT.active())
        published: Dict[Any, Dict[str, Any]] = {
            row["id"]: row for row in await self._access.fetch_all(self.table, PUBLISHED)
        }
        return [row["id"] for row in drafts if self._changed(row, published.get(row["id"]))]

    def _changed(self, draft: Dict[str, Any], published: Optional[Dict[str, Any]]) -> bool:
        if published is None or published.get("deleted_at") is not None:
            return True
        return self._hasher.differs(self.table, draft, published)
