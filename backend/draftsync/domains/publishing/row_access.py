"""Paged reads and bounded writes over a RowStore.

Hosted stores cap how many rows one read returns and how large one request
may be. Every publisher goes through this helper so reads are paginated,
``IN (...)`` lookups are chunked and upserts are batched the same way.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from draftsync.core.config import settings
from draftsync.core.exceptions import RowStoreError, SyncBatchError
from draftsync.core.protocols.row_store import RowFilter, RowStore


class RowAccess:
    """Wraps a RowStore with pagination, chunked lookups and write batching."""

    def __init__(
        self,
        store: RowStore,
        *,
        page_size: Optional[int] = None,
        write_batch_size: Optional[int] = None,
        lookup_chunk_size: Optional[int] = None,
    ) -> None:
        """Initialize with a store and optional size overrides (defaults from settings)."""
        self.store = store
        self.page_size = page_size or settings.PUBLISH_QUERY_PAGE_SIZE
        self.write_batch_size = write_batch_size or settings.PUBLISH_WRITE_BATCH_SIZE
        self.lookup_chunk_size = lookup_chunk_size or settings.PUBLISH_LOOKUP_CHUNK_SIZE

    async def fetch_all(
        self,
        table: str,
        where: RowFilter,
        *,
        columns: Optional[Sequence[str]] = None,
        order_by: Sequence[str] = ("id",),
    ) -> List[Dict[str, Any]]:
        """Read every matching row, one page at a time."""
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = await self.store.select(
                table,
                where,
                columns=columns,
                order_by=order_by,
                limit=self.page_size,
                offset=offset,
            )
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            offset += self.page_size

    async def fetch_in(
        self,
        table: str,
        where: RowFilter,
        column: str,
        values: Iterable[Any],
        *,
        columns: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Read rows whose ``column`` is in ``values``, chunking the id list."""
        unique = list(dict.fromkeys(values))
        rows: List[Dict[str, Any]] = []
        for i in range(0, len(unique), self.lookup_chunk_size):
            chunk = unique[i : i + self.lookup_chunk_size]
            rows.extend(
                await self.fetch_all(table, where.where_in(column, chunk), columns=columns)
            )
        return rows

    async def fetch_by_id(
        self, table: str, where: RowFilter, ids: Iterable[Any]
    ) -> Dict[Any, Dict[str, Any]]:
        """Read rows by id and index them by id."""
        return {row["id"]: row for row in await self.fetch_in(table, where, "id", ids)}

    async def fetch_one(self, table: str, where: RowFilter) -> Optional[Dict[str, Any]]:
        rows = await self.store.select(table, where, limit=1)
        return rows[0] if rows else None

    async def upsert_batched(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Upsert rows in bounded batches.

        Raises:
            SyncBatchError: A batch failed; earlier batches stay written.
        """
        written = 0
        for index, i in enumerate(range(0, len(rows), self.write_batch_size)):
            batch = rows[i : i + self.write_batch_size]
            try:
                written += await self.store.upsert(table, batch)
            except RowStoreError as e:
                raise SyncBatchError(table, index, written, e) from e
        return written

    async def delete_in(
        self, table: str, where: RowFilter, column: str, values: Iterable[Any]
    ) -> int:
        """Delete rows whose ``column`` is in ``values``, chunking the id list."""
        unique = list(dict.fromkeys(values))
        deleted = 0
        for i in range(0, len(unique), self.lookup_chunk_size):
            chunk = unique[i : i + self.lookup_chunk_size]
            deleted += await self.store.delete(table, where.where_in(column, chunk))
        return deleted

    async def update_in(
        self,
        table: str,
        where: RowFilter,
        column: str,
        values: Iterable[Any],
        patch: Mapping[str, Any],
    ) -> int:
        """Apply ``patch`` to rows whose ``column`` is in ``values``."""
        unique = list(dict.fromkeys(values))
        updated = 0
        for i in range(0, len(unique), self.lookup_chunk_size):
            chunk = unique[i : i + self.lookup_chunk_size]
            updated += await self.store.update(table, where.where_in(column, chunk), patch)
        return updated
