"""Hierarchical publish orchestrator for tree-shaped tables.

Rows are published roots first. A child is written only when its parent
already has an active published row or is written earlier in the same pass;
otherwise it is skipped with a warning and picked up by a later pass.
"""

from typing import Any, Dict, Iterable, List, Optional, Set
from uuid import UUID

from draftsync.core.datetime_utils import utc_now
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.fingerprint import ContentFingerprinter, fingerprinter
from draftsync.domains.publishing.protocols import HierarchyPublisherProtocol
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.row_sync import to_target_row
from draftsync.domains.publishing.tables import PAGE_FOLDERS, get_table
from draftsync.domains.publishing.types import SyncDirection

DRAFT = RowFilter.side(False)
PUBLISHED = RowFilter.side(True)


class HierarchyPublisher(HierarchyPublisherProtocol):
    """Publishes one self-referencing table (page folders, asset folders)."""

    def __init__(
        self,
        store: RowStore,
        table: str = PAGE_FOLDERS,
        access: Optional[RowAccess] = None,
        hasher: Optional[ContentFingerprinter] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize for ``table``, which must declare a parent column."""
        spec = get_table(table)
        if spec.parent_column is None:
            raise ValueError(f"{table} is not a hierarchical table")
        self.table = table
        self.parent_column = spec.parent_column
        self._access = access or RowAccess(store)
        self._hasher = hasher or fingerprinter
        self._logger = log or logger.with_prefix(f"[Hierarchy:{table}] ")

    async def publish_hierarchy(self, ids: Optional[Iterable[UUID]] = None) -> int:
        """Publish draft rows parents first.

        Args:
            ids: Rows to publish. ``None`` publishes the whole table; an empty
                collection publishes nothing.

        Returns:
            Number of rows written. Skipped children and unchanged rows are
            not counted, so an immediate second pass returns 0.
        """
        drafts = await self._load_drafts(ids)
        if not drafts:
            return 0

        active = [row for row in drafts if row.get("deleted_at") is None]
        tombstoned = [row["id"] for row in drafts if row.get("deleted_at") is not None]

        lookup_ids: Set[Any] = {row["id"] for row in drafts}
        lookup_ids.update(
            row[self.parent_column] for row in active if row.get(self.parent_column) is not None
        )
        published = await self._access.fetch_by_id(self.table, PUBLISHED, lookup_ids)

        await self._propagate_tombstones(tombstoned, published)

        # Roots first; a child never precedes its parent in the same pass
        active.sort(key=lambda row: row.get("depth") or 0)

        available: Set[Any] = {
            row_id for row_id, row in published.items() if row.get("deleted_at") is None
        }
        to_write: List[Dict[str, Any]] = []
        for row in active:
            parent_id = row.get(self.parent_column)
            if parent_id is not None and parent_id not in available:
                self._logger.warning(
                    f"Parent {parent_id} is not published, skipping {self.table} row {row['id']}"
                )
                continue
            available.add(row["id"])
            if self._needs_write(row, published.get(row["id"])):
                to_write.append(to_target_row(row, SyncDirection.PUBLISH))

        if not to_write:
            return 0
        return await self._access.upsert_batched(self.table, to_write)

    async def _load_drafts(self, ids: Optional[Iterable[UUID]]) -> List[Dict[str, Any]]:
        if ids is None:
            return await self._access.fetch_all(self.table, DRAFT)
        id_list = list(ids)
        if not id_list:
            return []
        return await self._access.fetch_in(self.table, DRAFT, "id", id_list)

    async def _propagate_tombstones(
        self, tombstoned: List[Any], published: Dict[Any, Dict[str, Any]]
    ) -> None:
        """Soft-delete the live published copies of soft-deleted drafts."""
        live = [
            row_id
            for row_id in tombstoned
            if row_id in published and published[row_id].get("deleted_at") is None
        ]
        if not live:
            return
        now = utc_now()
        await self._access.update_in(
            self.table, PUBLISHED.active(), "id", live, {"deleted_at": now}
        )
        for row_id in live:
            published[row_id] = {**published[row_id], "deleted_at": now}
        self._logger.info(f"Soft-deleted {len(live)} published {self.table} rows")

    def _needs_write(self, draft: Dict[str, Any], published: Optional[Dict[str, Any]]) -> bool:
        if published is None or published.get("deleted_at") is not None:
            return True
        return self._hasher.differs(self.table, draft, published)
