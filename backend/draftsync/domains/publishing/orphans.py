"""Orphan reconciler.

After a sync pass, rows on the target side that have no active source row
are deleted. Only target-side rows are ever touched, and a second pass with
no intervening change deletes nothing.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.protocols import OrphanReconcilerProtocol
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.types import (
    CleanupResult,
    ExcludeByColumn,
    PreserveFilter,
    SyncDirection,
)


class OrphanReconciler(OrphanReconcilerProtocol):
    """Finds and deletes target-side orphans."""

    def __init__(
        self,
        store: RowStore,
        access: Optional[RowAccess] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with the row store (and an optional preconfigured accessor)."""
        self._store = store
        self._access = access or RowAccess(store)
        self._logger = log or logger.with_prefix("[Orphans] ")

    async def cleanup_orphans(
        self,
        table: str,
        direction: SyncDirection,
        preserve_filter: Optional[PreserveFilter] = None,
        exclude_by_column: Optional[ExcludeByColumn] = None,
        collect_columns: Sequence[str] = (),
    ) -> CleanupResult:
        """Delete target rows whose id has no active source row.

        Args:
            table: Table to reconcile.
            direction: Decides which side is the source (kept) and which the target.
            preserve_filter: Orphans whose column equals the value are kept and
                reported in ``preserved_ids``.
            exclude_by_column: Orphans whose column value is in the id set are
                kept silently.
            collect_columns: Columns whose non-empty string values are gathered
                from the deleted rows, for follow-up cleanup of external resources.

        Returns:
            CleanupResult with the deleted count, preserved ids and collected values.
        """
        source_ids = await self._active_ids(table, direction.source_is_published)
        target = RowFilter.side(direction.target_is_published)
        target_rows = await self._access.fetch_all(table, target)

        result = CleanupResult(collected={column: [] for column in collect_columns})
        doomed: List[Dict[str, Any]] = []
        for row in target_rows:
            if row["id"] in source_ids:
                continue
            if preserve_filter is not None and row.get(preserve_filter.column) == (
                preserve_filter.value
            ):
                result.preserved_ids.append(row["id"])
                continue
            if exclude_by_column is not None and (
                row.get(exclude_by_column.column) in exclude_by_column.ids
            ):
                continue
            doomed.append(row)

        if not doomed:
            return result

        for column in collect_columns:
            for row in doomed:
                value = row.get(column)
                if isinstance(value, str) and value:
                    result.collected[column].append(value)

        result.deleted = await self._access.delete_in(
            table, target, "id", [row["id"] for row in doomed]
        )
        self._logger.info(
            f"Removed {result.deleted} orphaned {table} rows ({direction.value}), "
            f"preserved {len(result.preserved_ids)}"
        )
        return result

    async def cleanup_orphaned_child_rows(
        self,
        table: str,
        direction: SyncDirection,
        parent_column: str,
        parent_table: str,
    ) -> int:
        """Delete target child rows whose parent has no active source row.

        Returns:
            Number of child rows deleted.
        """
        parent_ids = await self._active_ids(parent_table, direction.source_is_published)
        target = RowFilter.side(direction.target_is_published)
        children = await self._access.fetch_all(table, target, columns=("id", parent_column))
        # Root rows (null parent) are never orphaned children
        doomed = [
            row["id"]
            for row in children
            if row.get(parent_column) is not None and row[parent_column] not in parent_ids
        ]
        if not doomed:
            return 0
        deleted = await self._access.delete_in(table, target, "id", doomed)
        self._logger.info(
            f"Removed {deleted} {table} rows whose {parent_table} parent is gone "
            f"({direction.value})"
        )
        return deleted

    async def count_deleted_drafts(self, table: str) -> int:
        """Count soft-deleted draft rows still waiting for a publish pass."""
        return await self._store.count(table, RowFilter.side(False).where_not_null("deleted_at"))

    async def _active_ids(self, table: str, is_published: bool) -> set:
        rows = await self._access.fetch_all(
            table, RowFilter.side(is_published).active(), columns=("id",)
        )
        return {row["id"] for row in rows}


async def purge_soft_deleted(
    access: RowAccess, table: str, collect_column: str = "storage_path"
) -> Tuple[int, List[str]]:
    """Hard-delete soft-deleted drafts and their published copies.

    Returns:
        ``(draft rows deleted, non-empty collect_column values of the deleted rows)``
    """
    draft = RowFilter.side(False)
    published = RowFilter.side(True)
    drafts = await access.fetch_all(table, draft.where_not_null("deleted_at"))
    if not drafts:
        return 0, []
    ids = [row["id"] for row in drafts]
    published_rows = await access.fetch_in(table, published, "id", ids)

    keys: List[str] = []
    for row in drafts + published_rows:
        key = row.get(collect_column)
        if isinstance(key, str) and key and key not in keys:
            keys.append(key)

    await access.delete_in(table, published, "id", ids)
    deleted = await access.delete_in(table, draft, "id", ids)
    return deleted, keys
