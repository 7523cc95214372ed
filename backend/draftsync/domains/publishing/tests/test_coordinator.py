"""Tests for the publish session coordinator."""

from uuid import uuid4

import pytest

from draftsync import schemas
from draftsync.domains.publishing.coordinator import PublishCoordinator
from draftsync.domains.publishing.orphans import OrphanReconciler
from draftsync.domains.publishing.site_settings import SiteSettings
from draftsync.domains.publishing.tables import (
    ASSETS,
    COLLECTION_ITEM_VALUES,
    COMPONENTS,
    FONTS,
    LAYER_STYLES,
    LOCALES,
    PAGE_FOLDERS,
    PAGE_LAYERS,
    PAGES,
    SETTINGS,
    TABLES,
)
from draftsync.domains.publishing.tests.site import seed_site

TIMESTAMPS = ("created_at", "updated_at")


def published_state(store):
    """Published rows of every table without their write timestamps."""
    return {
        table: sorted(
            (
                {k: v for k, v in row.items() if k not in TIMESTAMPS}
                for row in store.rows(table, is_published=True)
            ),
            key=lambda r: str(r["id"]),
        )
        for table in TABLES
    }


@pytest.fixture
def coordinator(row_store, fake_storage_cleaner, fake_metrics, access):
    return PublishCoordinator(row_store, fake_storage_cleaner, fake_metrics, access=access)


PUBLISH_ALL = schemas.PublishScope(publish_all=True)


class TestFullPublish:
    """Publishing everything needing publishing."""

    @pytest.mark.asyncio
    async def test_fresh_site(self, coordinator, row_store, fake_metrics):
        site = seed_site(row_store)

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.success, result.errors
        assert result.errors == []
        changes = result.changes
        assert (changes.folders, changes.pages, changes.components, changes.layer_styles) == (
            2,
            1,
            1,
            1,
        )
        assert (changes.locales, changes.translations) == (1, 1)
        assert (changes.asset_folders, changes.assets, changes.fonts) == (1, 1, 1)
        assert changes.collection_items == 1
        assert changes.css is True
        assert row_store.get(COLLECTION_ITEM_VALUES, site.value["id"], True)["value"] == "First"
        assert await SiteSettings(row_store).get_published_at() == result.published_at
        assert fake_metrics.sessions == [("publish", "success")]

    @pytest.mark.asyncio
    async def test_second_publish_changes_nothing(self, coordinator, row_store):
        seed_site(row_store)
        await coordinator.publish(PUBLISH_ALL)
        before = published_state(row_store)

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.success
        assert result.changes == schemas.PublishChanges()
        assert published_state(row_store) == before

    @pytest.mark.asyncio
    async def test_stats_per_table(self, coordinator, row_store, fake_metrics):
        seed_site(row_store)

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.stats.tables[PAGES].added == 1
        assert result.stats.tables[PAGE_FOLDERS].added == 2
        assert fake_metrics.rows[(PAGES, "added")] == 1
        assert result.stats.total_duration_ms >= 0

    @pytest.mark.asyncio
    async def test_deleted_page_is_unpublished(self, coordinator, row_store):
        site = seed_site(row_store)
        await coordinator.publish(PUBLISH_ALL)
        row_store.seed(PAGES, [{**site.page, "deleted_at": "2024-01-01"}])

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.success
        assert result.stats.tables[PAGES].deleted == 1
        assert row_store.get(PAGES, site.page["id"], True) is None
        assert row_store.get(PAGE_LAYERS, site.layers["id"], True) is None

    @pytest.mark.asyncio
    async def test_deleted_folder_is_purged(self, coordinator, row_store, access):
        site = seed_site(row_store)
        await coordinator.publish(PUBLISH_ALL)
        row_store.seed(PAGE_FOLDERS, [{**site.subfolder, "deleted_at": "2024-01-01"}])

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.success, result.errors
        assert row_store.get(PAGE_FOLDERS, site.subfolder["id"], True) is None
        assert row_store.get(PAGE_FOLDERS, site.subfolder["id"], False) is None
        assert row_store.get(PAGE_FOLDERS, site.folder["id"], False) is not None
        assert await OrphanReconciler(row_store, access).count_deleted_drafts(PAGE_FOLDERS) == 0

        again = await coordinator.publish(PUBLISH_ALL)

        assert again.changes.folders == 0
        assert again.stats.tables[PAGE_FOLDERS].deleted == 0

    @pytest.mark.asyncio
    async def test_deleted_component_is_detached_and_unpublished(self, coordinator, row_store):
        site = seed_site(row_store)
        await coordinator.publish(PUBLISH_ALL)
        row_store.seed(COMPONENTS, [{**site.component, "deleted_at": "2024-01-01"}])

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.success
        assert row_store.get(COMPONENTS, site.component["id"], True) is None
        published_layers = row_store.get(PAGE_LAYERS, site.layers["id"], True)
        assert published_layers["layers"] == [{"id": "root", "styleId": site.style["id"]}]

    @pytest.mark.asyncio
    async def test_locales_can_be_skipped(self, coordinator, row_store):
        seed_site(row_store)

        result = await coordinator.publish(
            schemas.PublishScope(publish_all=True, publish_locales=False)
        )

        assert result.success
        assert result.changes.locales == 0
        assert row_store.rows(LOCALES, True) == []


class TestScopedPublish:
    """Publishing explicit ids."""

    @pytest.mark.asyncio
    async def test_page_brings_its_folders(self, coordinator, row_store):
        site = seed_site(row_store)

        result = await coordinator.publish(schemas.PublishScope(page_ids=[site.page["id"]]))

        assert result.success
        assert (result.changes.folders, result.changes.pages) == (2, 1)
        assert row_store.get(PAGE_LAYERS, site.layers["id"], True) is not None
        # Out of scope
        assert row_store.rows(COMPONENTS, True) == []
        assert row_store.rows(ASSETS, True) == []
        assert row_store.rows(LOCALES, True) == []

    @pytest.mark.asyncio
    async def test_components_and_styles(self, coordinator, row_store):
        site = seed_site(row_store)

        result = await coordinator.publish(
            schemas.PublishScope(
                component_ids=[site.component["id"]], layer_style_ids=[site.style["id"]]
            )
        )

        assert (result.changes.components, result.changes.layer_styles) == (1, 1)
        assert row_store.rows(PAGES, True) == []

    @pytest.mark.asyncio
    async def test_publish_all_flag_with_ids_is_scoped(self, coordinator, row_store):
        site = seed_site(row_store)

        await coordinator.publish(
            schemas.PublishScope(publish_all=True, component_ids=[site.component["id"]])
        )

        assert row_store.rows(PAGES, True) == []


class TestCollectionRequests:
    """Explicit collections and items go to the collection publisher grouped."""

    @pytest.fixture
    def coordinator(self, row_store, fake_storage_cleaner, fake_metrics, fake_collection_publisher):
        return PublishCoordinator(
            row_store,
            fake_storage_cleaner,
            fake_metrics,
            collection_publisher=fake_collection_publisher,
        )

    @pytest.mark.asyncio
    async def test_items_are_grouped(self, coordinator, fake_collection_publisher):
        cid, a, b = uuid4(), uuid4(), uuid4()
        fake_collection_publisher.seed(cid, publishable=5, item_ids=[a, b])

        result = await coordinator.publish(schemas.PublishScope(collection_item_ids=[a, b]))

        assert result.success
        assert result.changes.collection_items == 2
        batch = [c for c in fake_collection_publisher._calls if c[0] == "publish_collections"]
        assert [(r.collection_id, r.item_ids) for r in batch[0][1]] == [(cid, [a, b])]

    @pytest.mark.asyncio
    async def test_explicit_collection_covers_its_items(
        self, coordinator, fake_collection_publisher
    ):
        cid, a = uuid4(), uuid4()
        fake_collection_publisher.seed(cid, publishable=3, item_ids=[a])

        result = await coordinator.publish(
            schemas.PublishScope(collection_ids=[cid], collection_item_ids=[a])
        )

        assert result.changes.collection_items == 3

    @pytest.mark.asyncio
    async def test_failed_collection_fails_the_session(
        self, coordinator, fake_collection_publisher, fake_metrics
    ):
        good, missing = uuid4(), uuid4()
        fake_collection_publisher.seed(good, publishable=1)

        result = await coordinator.publish(schemas.PublishScope(collection_ids=[missing, good]))

        assert not result.success
        assert result.changes.collection_items == 1
        assert any(str(missing) in error for error in result.errors)
        assert fake_metrics.sessions == [("publish", "partial")]


class TestFailures:
    """A failed step is reported; independent steps still run."""

    @pytest.mark.asyncio
    async def test_fatal_step(self, coordinator, row_store):
        site = seed_site(row_store)
        row_store.fail_on(COMPONENTS, "upsert")

        result = await coordinator.publish(PUBLISH_ALL)

        assert not result.success
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Publishing components")
        assert row_store.get(LAYER_STYLES, site.style["id"], True) is not None
        assert result.changes.collection_items == 1
        assert result.published_at is not None

    @pytest.mark.asyncio
    async def test_retry_after_fatal_step(self, coordinator, row_store):
        site = seed_site(row_store)
        row_store.fail_on(COMPONENTS, "upsert")
        await coordinator.publish(PUBLISH_ALL)

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.success
        assert result.changes.components == 1
        assert row_store.get(COMPONENTS, site.component["id"], True) is not None

    @pytest.mark.asyncio
    async def test_non_fatal_step(self, coordinator, row_store):
        site = seed_site(row_store)
        row_store.fail_on(ASSETS, "select")

        result = await coordinator.publish(PUBLISH_ALL)

        assert result.success
        assert any(error.startswith("Publishing assets") for error in result.errors)
        assert row_store.get(FONTS, site.font["id"], True) is not None

    @pytest.mark.asyncio
    async def test_unreachable_store(self, coordinator, row_store, fake_metrics):
        seed_site(row_store)
        row_store.fail_on(SETTINGS, "count")

        result = await coordinator.publish(PUBLISH_ALL)

        assert not result.success
        assert result.errors[0].startswith("Row store is not reachable")
        assert row_store.rows(PAGES, True) == []
        assert result.published_at is None
        assert fake_metrics.sessions == [("publish", "partial")]
