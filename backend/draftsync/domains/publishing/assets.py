"""Publishers for asset folders and for tables whose rows point at stored bytes.

Only full publishes touch these tables. Soft-deleted drafts are purged on
both sides first; the storage keys of purged asset and font rows are handed
to the storage cleaner so the bytes go with the metadata.
"""

from typing import Optional, Tuple

from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.row_store import RowStore
from draftsync.core.protocols.storage import StorageCleaner
from draftsync.domains.publishing.entities import EntityPublisher
from draftsync.domains.publishing.hierarchy import HierarchyPublisher
from draftsync.domains.publishing.orphans import purge_soft_deleted
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.tables import ASSET_FOLDERS
from draftsync.domains.publishing.types import StoredFilePublishResult


class StoredFilePublisher:
    """Publishes ``assets`` or ``fonts`` and cleans up the bytes of purged rows."""

    def __init__(
        self,
        store: RowStore,
        table: str,
        bucket: str,
        storage: StorageCleaner,
        access: Optional[RowAccess] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize for ``table``, whose files live in ``bucket``."""
        self.table = table
        self.bucket = bucket
        self._storage = storage
        self._access = access or RowAccess(store)
        self._entities = EntityPublisher(store, table, access=self._access)
        self._logger = log or logger.with_prefix(f"[{table}] ")

    async def publish(self) -> StoredFilePublishResult:
        """Purge soft-deleted rows (and their bytes), then publish changed rows."""
        result = StoredFilePublishResult()
        result.deleted, keys = await purge_soft_deleted(self._access, self.table)
        if keys:
            result.storage_deleted = await self._storage.delete_keys(self.bucket, keys)
            self._logger.info(
                f"Removed {result.storage_deleted}/{len(keys)} stored files from {self.bucket}"
            )
        result.published = await self._entities.publish(await self._entities.get_unpublished_ids())
        return result


class AssetFolderPublisher:
    """Purges soft-deleted asset folders, then publishes the folder tree."""

    def __init__(
        self,
        store: RowStore,
        access: Optional[RowAccess] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with the row store."""
        self._access = access or RowAccess(store)
        self._hierarchy = HierarchyPublisher(store, ASSET_FOLDERS, access=self._access)
        self._logger = log or logger.with_prefix("[AssetFolders] ")

    async def publish(self) -> Tuple[int, int]:
        """Returns ``(published, deleted)``."""
        deleted, _ = await purge_soft_deleted(self._access, ASSET_FOLDERS)
        published = await self._hierarchy.publish_hierarchy()
        if deleted or published:
            self._logger.info(f"Published {published} asset folders, purged {deleted}")
        return published, deleted
