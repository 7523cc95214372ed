"""Revert session coordinator.

Restores every draft table to the last published state: for each table the
published rows are copied back over the drafts, then drafts with no
published counterpart are deleted.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Set

from draftsync import schemas
from draftsync.core.config import settings
from draftsync.core.exceptions import InvalidStateError
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.metrics import PublishMetrics
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.core.protocols.storage import StorageCleaner
from draftsync.domains.publishing.orphans import OrphanReconciler
from draftsync.domains.publishing.protocols import RevertCoordinatorProtocol
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.domains.publishing.row_sync import RowSynchronizer
from draftsync.domains.publishing.session import SessionRunner
from draftsync.domains.publishing.site_settings import SiteSettings
from draftsync.domains.publishing.tables import (
    ASSET_FOLDERS,
    ASSETS,
    COLLECTION_FIELDS,
    COLLECTION_ITEM_VALUES,
    COLLECTION_ITEMS,
    COLLECTIONS,
    COMPONENTS,
    FONTS,
    LAYER_STYLES,
    LOCALES,
    PAGE_FOLDERS,
    PAGE_LAYERS,
    PAGES,
    TRANSLATIONS,
)
from draftsync.domains.publishing.types import (
    CleanupResult,
    ExcludeByColumn,
    PreserveFilter,
    SyncDirection,
)

STORAGE_COLUMN = "storage_path"

# Items never made publishable have no published copy and must survive a revert
KEEP_UNPUBLISHABLE_ITEMS = PreserveFilter("is_publishable", False)


@dataclass(frozen=True)
class _RevertStep:
    table: str
    label: str
    fatal: bool = True
    bucket: Optional[str] = None

    @property
    def table_attr(self) -> str:
        """Field name in RevertCounts."""
        return "folders" if self.table == PAGE_FOLDERS else self.table


REVERT_STEPS: Sequence[_RevertStep] = (
    _RevertStep(PAGE_FOLDERS, "folders"),
    _RevertStep(PAGES, "pages"),
    _RevertStep(PAGE_LAYERS, "page layers"),
    _RevertStep(COLLECTIONS, "collections"),
    _RevertStep(COLLECTION_FIELDS, "collection fields"),
    _RevertStep(COLLECTION_ITEMS, "collection items"),
    _RevertStep(COLLECTION_ITEM_VALUES, "collection item values"),
    _RevertStep(COMPONENTS, "components"),
    _RevertStep(LAYER_STYLES, "layer styles"),
    _RevertStep(ASSET_FOLDERS, "asset folders"),
    _RevertStep(ASSETS, "assets", fatal=False, bucket=settings.ASSETS_STORAGE_PREFIX),
    _RevertStep(FONTS, "fonts", fatal=False, bucket=settings.FONTS_STORAGE_PREFIX),
    _RevertStep(LOCALES, "locales", fatal=False),
    _RevertStep(TRANSLATIONS, "translations", fatal=False),
)


class RevertCoordinator(RevertCoordinatorProtocol):
    """Top-level revert entry point."""

    def __init__(
        self,
        store: RowStore,
        storage: StorageCleaner,
        metrics: PublishMetrics,
        access: Optional[RowAccess] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with injected collaborators."""
        self._storage = storage
        self._metrics = metrics
        self._logger = log or logger
        self._access = access or RowAccess(store)
        self._sync = RowSynchronizer(store, access=self._access)
        self._reconciler = OrphanReconciler(store, access=self._access)
        self._settings = SiteSettings(store, access=self._access)

    async def revert(self) -> schemas.RevertResult:
        """Restore all drafts to the last published state.

        Returns:
            RevertResult with rows restored (``changes``) and draft rows
            removed (``cleaned``) per table.

        Raises:
            InvalidStateError: The site has never been published.
        """
        published_at = await self._settings.get_published_at()
        if published_at is None:
            raise InvalidStateError("Nothing to revert: the site has never been published")

        session = SessionRunner("revert", self._metrics, log=self._logger)
        session.logger.info(f"Reverting drafts to publish of {published_at.isoformat()}")
        result = schemas.RevertResult()

        preserved_items: Sequence = ()
        for step in REVERT_STEPS:
            preserve = None
            collect: Sequence[str] = ()
            if step.table == COLLECTION_ITEMS:
                preserve = KEEP_UNPUBLISHABLE_ITEMS
            if step.bucket is not None:
                collect = (STORAGE_COLUMN,)

            async def run(step=step, preserve=preserve, collect=collect, kept=preserved_items):
                exclude = None
                if step.table == COLLECTION_ITEM_VALUES:
                    # Read from the drafts so a failed items step still protects these values
                    kept_items = set(kept) | await self._unpublishable_item_ids()
                    exclude = ExcludeByColumn("item_id", frozenset(kept_items))
                restored = await self._sync.sync_rows(step.table, SyncDirection.REVERT)
                cleanup = await self._reconciler.cleanup_orphans(
                    step.table,
                    SyncDirection.REVERT,
                    preserve_filter=preserve,
                    exclude_by_column=exclude,
                    collect_columns=collect,
                )
                if step.bucket is not None:
                    await self._remove_files(session, step.bucket, cleanup)
                return restored, cleanup

            outcome = await session.step(f"Reverting {step.label}", run, fatal=step.fatal)
            if outcome is None:
                continue
            restored, cleanup = outcome
            if step.table == COLLECTION_ITEMS:
                preserved_items = cleanup.preserved_ids
            setattr(result.changes, step.table_attr, restored)
            setattr(result.cleaned, step.table_attr, cleanup.deleted)
            session.record(step.table, added=restored, deleted=cleanup.deleted)

        css = await session.step("Reverting CSS", self._settings.revert_css, fatal=False)
        if css is not None:
            result.changes.css = css
            session.record("css", added=int(css))

        result.stats = session.finish()
        result.errors = list(session.errors)
        result.success = session.success
        result.message = (
            "Drafts reverted to the last published state"
            if result.success
            else "Revert finished with errors"
        )
        return result

    async def _unpublishable_item_ids(self) -> Set[Any]:
        rows = await self._access.fetch_all(
            COLLECTION_ITEMS,
            RowFilter.side(False).where_eq(
                KEEP_UNPUBLISHABLE_ITEMS.column, KEEP_UNPUBLISHABLE_ITEMS.value
            ),
            columns=("id",),
        )
        return {row["id"] for row in rows}

    async def _remove_files(
        self, session: SessionRunner, bucket: str, cleanup: CleanupResult
    ) -> None:
        keys = cleanup.collected.get(STORAGE_COLUMN) or []
        if not keys:
            return
        removed = await self._storage.delete_keys(bucket, keys)
        session.logger.info(f"Removed {removed}/{len(keys)} stored files from {bucket}")
