"""Generic row synchronizer.

Copies active rows from the source side of a draft/published pair onto the
target side with upsert-by-composite-key semantics, so a repeated call
rewrites the same rows with the same values.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from draftsync.core.datetime_utils import utc_now
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.protocols import RowSynchronizerProtocol
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.types import SyncDirection


def to_target_row(
    row: Mapping[str, Any],
    direction: SyncDirection,
    exclude_columns: Sequence[str] = (),
) -> Dict[str, Any]:
    """Build the target-side copy of a source row.

    All fields are copied except ``exclude_columns``; ``is_published`` is set
    to the target side and ``updated_at`` refreshed.
    """
    target = {k: v for k, v in row.items() if k not in exclude_columns}
    target["is_published"] = direction.target_is_published
    target["updated_at"] = utc_now()
    return target


class RowSynchronizer(RowSynchronizerProtocol):
    """Batched source-to-target copy for any publishable table."""

    def __init__(
        self,
        store: RowStore,
        access: Optional[RowAccess] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with the row store (and an optional preconfigured accessor)."""
        self._access = access or RowAccess(store)
        self._logger = log or logger.with_prefix("[RowSync] ")

    async def sync_rows(
        self,
        table: str,
        direction: SyncDirection,
        ids: Optional[Iterable[Any]] = None,
        exclude_columns: Sequence[str] = (),
    ) -> int:
        """Copy active source rows onto the target side.

        Args:
            table: Table to synchronize.
            direction: PUBLISH copies drafts over published rows, REVERT the reverse.
            ids: Restrict to these ids. ``None`` means every active source row;
                an empty list means nothing.
            exclude_columns: Columns never copied to the target.

        Returns:
            Number of rows written.

        Raises:
            SyncBatchError: A write batch failed. Earlier batches stay written.
        """
        source = RowFilter.side(direction.source_is_published).active()
        if ids is None:
            rows = await self._access.fetch_all(table, source)
        else:
            id_list = list(ids)
            if not id_list:
                return 0
            rows = await self._access.fetch_in(table, source, "id", id_list)
        return await self._write(table, direction, rows, exclude_columns)

    async def sync_rows_by_parent(
        self,
        table: str,
        direction: SyncDirection,
        parent_column: str,
        parent_ids: Iterable[Any],
        exclude_columns: Sequence[str] = (),
    ) -> int:
        """Copy active source rows whose ``parent_column`` is in ``parent_ids``.

        Used when the caller knows which parents changed but not which children.
        """
        parents = list(parent_ids)
        if not parents:
            return 0
        source = RowFilter.side(direction.source_is_published).active()
        rows = await self._access.fetch_in(table, source, parent_column, parents)
        return await self._write(table, direction, rows, exclude_columns)

    async def _write(
        self,
        table: str,
        direction: SyncDirection,
        rows: List[Dict[str, Any]],
        exclude_columns: Sequence[str],
    ) -> int:
        if not rows:
            return 0
        targets = [to_target_row(row, direction, exclude_columns) for row in rows]
        written = await self._access.upsert_batched(table, targets)
        self._logger.debug(f"{direction.value} {table}: {written} rows written")
        return written
