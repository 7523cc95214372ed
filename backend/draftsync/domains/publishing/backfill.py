"""Backfill ``content_hash`` on legacy draft rows."""

from typing import Optional

from draftsync.core.logging import logger
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.domains.publishing.fingerprint import ContentFingerprinter, fingerprinter
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.tables import get_table


async def backfill_content_hashes(
    store: RowStore,
    table: str,
    access: Optional[RowAccess] = None,
    hasher: Optional[ContentFingerprinter] = None,
) -> int:
    """Compute and store ``content_hash`` for draft rows that have none.

    Running it again finds nothing to do and returns 0.

    Raises:
        ValueError: ``table`` does not store a content hash.
    """
    if not get_table(table).stores_hash:
        raise ValueError(f"{table} does not store a content hash")
    access = access or RowAccess(store)
    hasher = hasher or fingerprinter

    rows = await access.fetch_all(table, RowFilter.side(False).where_null("content_hash"))
    if not rows:
        return 0
    updated = [{**row, "content_hash": hasher.fingerprint(table, row)} for row in rows]
    count = await access.upsert_batched(table, updated)
    logger.info(f"Backfilled content_hash on {count} {table} rows")
    return count
