"""Tests for the orphan reconciler."""

import pytest

from draftsync.domains.publishing.orphans import OrphanReconciler
from draftsync.domains.publishing.tables import (
    ASSETS,
    COLLECTION_ITEMS,
    COLLECTIONS,
    COMPONENTS,
    PAGE_LAYERS,
    PAGES,
)
from draftsync.domains.publishing.tests.rows import make_row, published
from draftsync.domains.publishing.types import ExcludeByColumn, PreserveFilter, SyncDirection


class TestCleanupOrphans:
    """Target rows without an active source row are deleted."""

    @pytest.mark.asyncio
    async def test_publish_removes_published_rows_without_draft(self, row_store, access):
        kept = make_row(COMPONENTS)
        gone = make_row(COMPONENTS, is_published=True)
        row_store.seed(COMPONENTS, [kept, published(kept), gone])

        result = await OrphanReconciler(row_store, access).cleanup_orphans(
            COMPONENTS, SyncDirection.PUBLISH
        )

        assert result.deleted == 1
        assert [r["id"] for r in row_store.rows(COMPONENTS, True)] == [kept["id"]]

    @pytest.mark.asyncio
    async def test_soft_deleted_draft_counts_as_missing(self, row_store, access):
        draft = make_row(COMPONENTS, deleted_at="2024-01-01")
        row_store.seed(COMPONENTS, [draft, published(draft, deleted_at=None)])

        result = await OrphanReconciler(row_store, access).cleanup_orphans(
            COMPONENTS, SyncDirection.PUBLISH
        )

        assert result.deleted == 1
        assert row_store.rows(COMPONENTS, True) == []
        # Source side is never touched
        assert len(row_store.rows(COMPONENTS, False)) == 1

    @pytest.mark.asyncio
    async def test_revert_removes_drafts_without_published_row(self, row_store, access):
        live = make_row(COMPONENTS)
        new_draft = make_row(COMPONENTS)
        row_store.seed(COMPONENTS, [live, published(live), new_draft])

        result = await OrphanReconciler(row_store, access).cleanup_orphans(
            COMPONENTS, SyncDirection.REVERT
        )

        assert result.deleted == 1
        assert row_store.get(COMPONENTS, new_draft["id"], False) is None
        assert row_store.get(COMPONENTS, live["id"], True) is not None

    @pytest.mark.asyncio
    async def test_second_pass_deletes_nothing(self, row_store, access):
        row_store.seed(COMPONENTS, [make_row(COMPONENTS, is_published=True) for _ in range(3)])
        reconciler = OrphanReconciler(row_store, access)

        first = await reconciler.cleanup_orphans(COMPONENTS, SyncDirection.PUBLISH)
        second = await reconciler.cleanup_orphans(COMPONENTS, SyncDirection.PUBLISH)

        assert first.deleted == 3
        assert second.deleted == 0

    @pytest.mark.asyncio
    async def test_preserve_filter(self, row_store, access):
        collection = make_row(COLLECTIONS)
        row_store.seed(COLLECTIONS, [collection, published(collection)])
        keep = make_row(COLLECTION_ITEMS, collection_id=collection["id"], is_publishable=False)
        drop = make_row(COLLECTION_ITEMS, collection_id=collection["id"], is_publishable=True)
        row_store.seed(COLLECTION_ITEMS, [keep, drop])

        result = await OrphanReconciler(row_store, access).cleanup_orphans(
            COLLECTION_ITEMS,
            SyncDirection.REVERT,
            preserve_filter=PreserveFilter("is_publishable", False),
        )

        assert result.deleted == 1
        assert result.preserved_ids == [keep["id"]]
        assert row_store.get(COLLECTION_ITEMS, keep["id"], False) is not None

    @pytest.mark.asyncio
    async def test_exclude_by_column(self, row_store, access):
        page = make_row(PAGES)
        row_store.seed(PAGES, [page])
        layers = make_row(PAGE_LAYERS, page_id=page["id"])
        other = make_row(PAGE_LAYERS, page_id=page["id"])
        row_store.seed(PAGE_LAYERS, [layers, other])

        result = await OrphanReconciler(row_store, access).cleanup_orphans(
            PAGE_LAYERS,
            SyncDirection.REVERT,
            exclude_by_column=ExcludeByColumn("id", frozenset({layers["id"]})),
        )

        assert result.deleted == 1
        assert result.preserved_ids == []
        assert row_store.get(PAGE_LAYERS, layers["id"], False) is not None

    @pytest.mark.asyncio
    async def test_collect_columns(self, row_store, access):
        with_file = make_row(ASSETS, storage_path="a/b.png")
        without_file = make_row(ASSETS, storage_path=None)
        empty = make_row(ASSETS, storage_path="")
        row_store.seed(ASSETS, [with_file, without_file, empty])

        result = await OrphanReconciler(row_store, access).cleanup_orphans(
            ASSETS, SyncDirection.REVERT, collect_columns=("storage_path",)
        )

        assert result.deleted == 3
        assert result.collected == {"storage_path": ["a/b.png"]}

    @pytest.mark.asyncio
    async def test_nothing_to_delete_still_reports_collected_keys(self, row_store, access):
        result = await OrphanReconciler(row_store, access).cleanup_orphans(
            ASSETS, SyncDirection.PUBLISH, collect_columns=("storage_path",)
        )
        assert result.deleted == 0
        assert result.collected == {"storage_path": []}


class TestChildRows:
    @pytest.mark.asyncio
    async def test_children_of_missing_parents_are_removed(self, row_store, access):
        live_page = make_row(PAGES)
        dead_page = make_row(PAGES, deleted_at="2024-01-01")
        row_store.seed(PAGES, [live_page, published(live_page), dead_page, published(dead_page)])
        live_layers = make_row(PAGE_LAYERS, page_id=live_page["id"], is_published=True)
        dead_layers = make_row(PAGE_LAYERS, page_id=dead_page["id"], is_published=True)
        row_store.seed(PAGE_LAYERS, [live_layers, dead_layers])

        deleted = await OrphanReconciler(row_store, access).cleanup_orphaned_child_rows(
            PAGE_LAYERS, SyncDirection.PUBLISH, "page_id", PAGES
        )

        assert deleted == 1
        assert [r["id"] for r in row_store.rows(PAGE_LAYERS, True)] == [live_layers["id"]]


class TestCountDeletedDrafts:
    @pytest.mark.asyncio
    async def test_counts_only_soft_deleted_drafts(self, row_store, access):
        row_store.seed(
            COMPONENTS,
            [
                make_row(COMPONENTS, deleted_at="2024-01-01"),
                make_row(COMPONENTS, deleted_at="2024-01-02"),
                make_row(COMPONENTS),
                make_row(COMPONENTS, is_published=True, deleted_at="2024-01-01"),
            ],
        )

        assert await OrphanReconciler(row_store, access).count_deleted_drafts(COMPONENTS) == 2
