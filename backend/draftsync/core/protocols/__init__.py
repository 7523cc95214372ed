"""Core protocols consumed by the publishing domain."""

from draftsync.core.protocols.metrics import PublishMetrics
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.core.protocols.storage import StorageCleaner

__all__ = [
    "PublishMetrics",
    "RowFilter",
    "RowStore",
    "StorageCleaner",
]
