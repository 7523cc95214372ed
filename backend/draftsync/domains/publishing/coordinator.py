"""Publish session coordinator.

Sequence (fixed):

    folders -> pages -> components -> layer styles
    -> asset folders / assets / fonts (full publish only)
    -> locales and translations (full publish only)
    -> collections -> CSS -> published_at

Each step catches its own failure into the result's error list; later,
independent steps still run. ``publish`` never raises for a step failure.
"""

from datetime import datetime
from typing import Dict, List, Optional, Set
from uuid import UUID

from draftsync import schemas
from draftsync.core.config import settings
from draftsync.core.datetime_utils import utc_now
from draftsync.core.exceptions import ConfigurationError
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.metrics import PublishMetrics
from draftsync.core.protocols.row_store import RowFilter, RowStore
from draftsync.core.protocols.storage import StorageCleaner
from draftsync.domains.publishing.assets import AssetFolderPublisher, StoredFilePublisher
from draftsync.domains.publishing.collections import CollectionPublisher
from draftsync.domains.publishing.entities import EntityPublisher
from draftsync.domains.publishing.hierarchy import HierarchyPublisher
from draftsync.domains.publishing.layer_tree import LayerReferenceDetacher
from draftsync.domains.publishing.localisation import LocalisationPublisher
from draftsync.domains.publishing.orphans import OrphanReconciler, purge_soft_deleted
from draftsync.domains.publishing.pages import PagePublisher
from draftsync.domains.publishing.protocols import (
    CollectionPublisherProtocol,
    PublishCoordinatorProtocol,
)
from draftsync.domains.publishing.row_access import RowAccess
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
    SETTINGS,
    TRANSLATIONS,
)
from draftsync.domains.publishing.types import CollectionPublishRequest, SyncDirection

DRAFT = RowFilter.side(False)


class PublishCoordinator(PublishCoordinatorProtocol):
    """Top-level publish entry point."""

    def __init__(
        self,
        store: RowStore,
        storage: StorageCleaner,
        metrics: PublishMetrics,
        collection_publisher: Optional[CollectionPublisherProtocol] = None,
        access: Optional[RowAccess] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize with injected collaborators; publishers are built on the same store."""
        self._store = store
        self._metrics = metrics
        self._logger = log or logger
        self._access = access or RowAccess(store)
        self._reconciler = OrphanReconciler(store, self._access)
        self._folders = HierarchyPublisher(store, PAGE_FOLDERS, access=self._access)
        self._pages = PagePublisher(store, access=self._access)
        self._components = EntityPublisher(
            store, COMPONENTS, access=self._access, reconciler=self._reconciler
        )
        self._styles = EntityPublisher(
            store, LAYER_STYLES, access=self._access, reconciler=self._reconciler
        )
        self._detacher = LayerReferenceDetacher(store, access=self._access)
        self._asset_folders = AssetFolderPublisher(store, access=self._access)
        self._assets = StoredFilePublisher(
            store, ASSETS, settings.ASSETS_STORAGE_PREFIX, storage, access=self._access
        )
        self._fonts = StoredFilePublisher(
            store, FONTS, settings.FONTS_STORAGE_PREFIX, storage, access=self._access
        )
        self._localisation = LocalisationPublisher(
            store, access=self._access, reconciler=self._reconciler
        )
        self._collections = collection_publisher or CollectionPublisher(store, access=self._access)
        self._settings = SiteSettings(store, access=self._access)

    async def publish(self, scope: schemas.PublishScope) -> schemas.PublishResult:
        """Run one publish session.

        Args:
            scope: Explicit ids per entity type, or ``publish_all`` with no ids
                for "everything needing publishing".

        Returns:
            PublishResult with per-type counts, per-table stats and the
            errors of any failed step.
        """
        session = SessionRunner("publish", self._metrics, log=self._logger)
        result = schemas.PublishResult()
        publishing_all = scope.is_publishing_all
        session.logger.info(
            f"Publish requested (all={publishing_all}, locales={scope.publish_locales})"
        )

        try:
            await self._check_store()
        except ConfigurationError as e:
            session.fail(str(e))
            return self._finish(session, result)

        await self._publish_folders(session, scope, result, publishing_all)
        if publishing_all:
            await self._detach_deleted_references(session)
        await self._publish_pages(session, scope, result, publishing_all)
        await self._publish_entities(session, scope, result, publishing_all)
        if publishing_all:
            await self._publish_stored_files(session, result)
            if scope.publish_locales:
                await self._publish_localisation(session, result)
        await self._publish_collections(session, scope, result, publishing_all)
        await self._publish_css(session, result)

        result.published_at = await session.step(
            "Saving publish timestamp", self._save_published_at, fatal=False
        )
        return self._finish(session, result)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _check_store(self) -> None:
        """Fail fast when the store cannot answer a trivial query."""
        try:
            await self._store.count(SETTINGS, RowFilter())
        except Exception as e:
            raise ConfigurationError(f"Row store is not reachable: {e}") from e

    async def _publish_folders(
        self,
        session: SessionRunner,
        scope: schemas.PublishScope,
        result: schemas.PublishResult,
        publishing_all: bool,
    ) -> None:
        async def run() -> int:
            if publishing_all:
                count = await self._folders.publish_hierarchy()
                cleanup = await self._reconciler.cleanup_orphans(
                    PAGE_FOLDERS, SyncDirection.PUBLISH
                )
                # Tombstones have reached the published side; drop them from the drafts too
                purged, _ = await purge_soft_deleted(self._access, PAGE_FOLDERS)
                if purged:
                    session.logger.info(f"Purged {purged} soft-deleted page folders")
                session.record(PAGE_FOLDERS, deleted=cleanup.deleted + purged, duration_ms=0)
                return count
            folder_ids: Set[UUID] = set(scope.folder_ids or [])
            if scope.page_ids:
                folder_ids |= await self._pages.collect_ancestor_folder_ids(scope.page_ids)
            if not folder_ids:
                return 0
            return await self._folders.publish_hierarchy(folder_ids)

        count = await session.step("Publishing folders", run)
        if count is not None:
            result.changes.folders = count
            session.record(PAGE_FOLDERS, added=count)

    async def _detach_deleted_references(self, session: SessionRunner) -> None:
        detached = await session.step(
            "Detaching deleted components and styles", self._detacher.detach_deleted
        )
        if detached is not None:
            session.logger.debug(
                f"Detached references in {detached.page_layers} page layer rows "
                f"and {detached.components} components"
            )

    async def _publish_pages(
        self,
        session: SessionRunner,
        scope: schemas.PublishScope,
        result: schemas.PublishResult,
        publishing_all: bool,
    ) -> None:
        async def run():
            if scope.page_ids:
                page_ids: List[UUID] = list(scope.page_ids)
            elif publishing_all:
                page_ids = await self._pages.get_unpublished_page_ids()
            else:
                return None
            pages = await self._pages.publish_pages(page_ids)
            if publishing_all:
                for table in (PAGES, PAGE_LAYERS):
                    cleanup = await self._reconciler.cleanup_orphans(table, SyncDirection.PUBLISH)
                    session.record(table, deleted=cleanup.deleted, duration_ms=0)
            return pages

        pages = await session.step("Publishing pages", run)
        if pages is not None:
            result.changes.pages = pages.count
            session.record(
                PAGES, added=pages.count, deleted=pages.deleted, duration_ms=pages.pages_duration_ms
            )
            session.record(
                PAGE_LAYERS, added=pages.layers_count, duration_ms=pages.layers_duration_ms
            )

    async def _publish_entities(
        self,
        session: SessionRunner,
        scope: schemas.PublishScope,
        result: schemas.PublishResult,
        publishing_all: bool,
    ) -> None:
        for table, publisher, ids, label in (
            (COMPONENTS, self._components, scope.component_ids, "components"),
            (LAYER_STYLES, self._styles, scope.layer_style_ids, "layer styles"),
        ):
            if not ids and not publishing_all:
                continue

            async def run(publisher=publisher, ids=ids):
                if ids:
                    return await publisher.publish(ids), 0
                return await publisher.publish_all()

            outcome = await session.step(f"Publishing {label}", run)
            if outcome is None:
                continue
            published, deleted = outcome
            if table == COMPONENTS:
                result.changes.components = published
            else:
                result.changes.layer_styles = published
            session.record(table, added=published, deleted=deleted)

    async def _publish_stored_files(
        self, session: SessionRunner, result: schemas.PublishResult
    ) -> None:
        folders = await session.step(
            "Publishing asset folders", self._asset_folders.publish, fatal=False
        )
        if folders is not None:
            result.changes.asset_folders, result.changes.asset_folders_deleted = folders
            session.record(ASSET_FOLDERS, added=folders[0], deleted=folders[1])

        assets = await session.step("Publishing assets", self._assets.publish, fatal=False)
        if assets is not None:
            result.changes.assets = assets.published
            result.changes.assets_deleted = assets.deleted
            session.record(ASSETS, added=assets.published, deleted=assets.deleted)

        fonts = await session.step("Publishing fonts", self._fonts.publish, fatal=False)
        if fonts is not None:
            result.changes.fonts = fonts.published
            result.changes.fonts_deleted = fonts.deleted
            session.record(FONTS, added=fonts.published, deleted=fonts.deleted)

    async def _publish_localisation(
        self, session: SessionRunner, result: schemas.PublishResult
    ) -> None:
        localisation = await session.step(
            "Publishing locales and translations", self._localisation.publish, fatal=False
        )
        if localisation is None:
            return
        result.changes.locales = localisation.locales
        result.changes.translations = localisation.translations
        session.record(
            LOCALES,
            added=localisation.locales,
            deleted=localisation.locales_deleted,
            duration_ms=localisation.locales_duration_ms,
        )
        session.record(
            TRANSLATIONS,
            added=localisation.translations,
            deleted=localisation.translations_deleted,
            duration_ms=localisation.translations_duration_ms,
        )

    async def _publish_collections(
        self,
        session: SessionRunner,
        scope: schemas.PublishScope,
        result: schemas.PublishResult,
        publishing_all: bool,
    ) -> None:
        requests = await session.step(
            "Resolving collections",
            lambda: self._collection_requests(scope, publishing_all),
        )
        if not requests:
            return

        batch = await session.step(
            "Publishing collections", lambda: self._collections.publish_collections(requests)
        )
        if batch is None:
            return

        totals: Dict[str, List[int]] = {
            COLLECTIONS: [0, 0, 0],
            COLLECTION_FIELDS: [0, 0, 0],
            COLLECTION_ITEMS: [0, 0, 0],
            COLLECTION_ITEM_VALUES: [0, 0, 0],
        }
        for published in batch.results:
            if not published.success:
                session.failed = True
                session.errors.extend(
                    f"Collection {published.collection_id}: {error}" for error in published.errors
                )
                continue
            totals[COLLECTIONS][0] += int(published.collection)
            totals[COLLECTION_FIELDS][0] += published.fields_count
            totals[COLLECTION_FIELDS][1] += published.fields_deleted
            totals[COLLECTION_ITEMS][0] += published.items_count
            totals[COLLECTION_ITEMS][1] += published.items_deleted
            totals[COLLECTION_ITEM_VALUES][0] += published.values_count
            totals[COLLECTION_ITEM_VALUES][1] += published.values_deleted
            for table, stage in (
                (COLLECTIONS, "collections"),
                (COLLECTION_FIELDS, "fields"),
                (COLLECTION_ITEMS, "items"),
                (COLLECTION_ITEM_VALUES, "values"),
            ):
                timing = published.timing.get(stage)
                if timing is not None:
                    totals[table][2] += timing.duration_ms

        result.changes.collection_items = totals[COLLECTION_ITEMS][0]
        for table, (added, deleted, duration_ms) in totals.items():
            session.record(table, added=added, deleted=deleted, duration_ms=duration_ms)

    async def _collection_requests(
        self, scope: schemas.PublishScope, publishing_all: bool
    ) -> List[CollectionPublishRequest]:
        """Explicit collections publish their items needing publishing; explicit
        items are grouped by collection. A full publish covers every draft collection."""
        if publishing_all:
            rows = await self._access.fetch_all(COLLECTIONS, DRAFT, columns=("id",))
            return [CollectionPublishRequest(collection_id=row["id"]) for row in rows]

        requested: Dict[UUID, Optional[List[UUID]]] = {}
        for collection_id in scope.collection_ids or []:
            requested[collection_id] = None
        if scope.collection_item_ids:
            grouped = await self._collections.group_items_by_collection(scope.collection_item_ids)
            for collection_id, item_ids in grouped.items():
                if collection_id in requested:
                    # Publishing everything needing it already covers these items
                    continue
                requested[collection_id] = item_ids
        return [
            CollectionPublishRequest(collection_id=cid, item_ids=item_ids)
            for cid, item_ids in requested.items()
        ]

    async def _publish_css(self, session: SessionRunner, result: schemas.PublishResult) -> None:
        copied = await session.step("Publishing CSS", self._settings.publish_css, fatal=False)
        if copied is not None:
            result.changes.css = copied
            session.record("css", added=int(copied))

    async def _save_published_at(self) -> datetime:
        published_at = utc_now()
        await self._settings.save_published_at(published_at)
        return published_at

    def _finish(
        self, session: SessionRunner, result: schemas.PublishResult
    ) -> schemas.PublishResult:
        result.stats = session.finish()
        result.errors = list(session.errors)
        result.success = session.success
        return result
