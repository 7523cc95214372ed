"""Tests for the revert session coordinator."""

import pytest
import pytest_asyncio

from draftsync import schemas
from draftsync.core.exceptions import InvalidStateError
from draftsync.domains.publishing.coordinator import PublishCoordinator
from draftsync.domains.publishing.revert import RevertCoordinator
from draftsync.domains.publishing.site_settings import SiteSettings
from draftsync.domains.publishing.tables import (
    ASSETS,
    COLLECTION_ITEM_VALUES,
    COLLECTION_ITEMS,
    COMPONENTS,
    PAGES,
)
from draftsync.domains.publishing.tests.rows import make_row
from draftsync.domains.publishing.tests.site import seed_site


@pytest.fixture
def reverter(row_store, fake_storage_cleaner, fake_metrics, access):
    return RevertCoordinator(row_store, fake_storage_cleaner, fake_metrics, access=access)


@pytest_asyncio.fixture
async def live_site(row_store, fake_storage_cleaner, fake_metrics, access):
    """A fully published site."""
    site = seed_site(row_store)
    result = await PublishCoordinator(
        row_store, fake_storage_cleaner, fake_metrics, access=access
    ).publish(schemas.PublishScope(publish_all=True))
    assert result.success, result.errors
    fake_metrics.clear()
    return site


class TestRevert:
    """Drafts are restored to the last published state."""

    @pytest.mark.asyncio
    async def test_never_published(self, reverter, row_store):
        seed_site(row_store)

        with pytest.raises(InvalidStateError):
            await reverter.revert()

    @pytest.mark.asyncio
    async def test_restores_edited_and_deleted_drafts(self, reverter, row_store, live_site):
        row_store.seed(PAGES, [{**live_site.page, "name": "Edited", "deleted_at": None}])
        row_store.seed(COMPONENTS, [{**live_site.component, "deleted_at": "2024-01-01"}])
        row_store.seed(
            COLLECTION_ITEM_VALUES, [{**live_site.value, "value": "Draft only wording"}]
        )

        result = await reverter.revert()

        assert result.success, result.errors
        assert result.message == "Drafts reverted to the last published state"
        assert row_store.get(PAGES, live_site.page["id"], False)["name"] == "Intro"
        assert row_store.get(COMPONENTS, live_site.component["id"], False)["deleted_at"] is None
        restored_value = row_store.get(COLLECTION_ITEM_VALUES, live_site.value["id"], False)
        assert restored_value["value"] == "First"
        assert result.changes.pages == 1
        assert result.changes.folders == 2

    @pytest.mark.asyncio
    async def test_removes_drafts_never_published(self, reverter, row_store, live_site):
        extra = make_row(COMPONENTS, name="Unpublished")
        row_store.seed(COMPONENTS, [extra])

        result = await reverter.revert()

        assert result.cleaned.components == 1
        assert row_store.get(COMPONENTS, extra["id"], False) is None
        assert row_store.get(COMPONENTS, live_site.component["id"], False) is not None

    @pytest.mark.asyncio
    async def test_keeps_unpublishable_items_and_their_values(
        self, reverter, row_store, live_site
    ):
        hidden = make_row(
            COLLECTION_ITEMS, collection_id=live_site.collection["id"], is_publishable=False
        )
        hidden_value = make_row(
            COLLECTION_ITEM_VALUES,
            item_id=hidden["id"],
            field_id=live_site.field["id"],
            value="Draft",
        )
        row_store.seed(COLLECTION_ITEMS, [hidden])
        row_store.seed(COLLECTION_ITEM_VALUES, [hidden_value])

        result = await reverter.revert()

        assert result.success
        assert result.cleaned.collection_items == 0
        assert row_store.get(COLLECTION_ITEMS, hidden["id"], False) is not None
        assert row_store.get(COLLECTION_ITEM_VALUES, hidden_value["id"], False) is not None

    @pytest.mark.asyncio
    async def test_draft_only_asset_loses_its_file(
        self, reverter, row_store, live_site, fake_storage_cleaner
    ):
        upload = make_row(ASSETS, storage_path="img/new.png")
        row_store.seed(ASSETS, [upload])
        fake_storage_cleaner.seed("assets", ["img/new.png", "img/logo.png"])

        result = await reverter.revert()

        assert result.cleaned.assets == 1
        assert fake_storage_cleaner.objects["assets"] == {"img/logo.png"}
        assert row_store.get(ASSETS, live_site.asset["id"], False) is not None

    @pytest.mark.asyncio
    async def test_css_is_reverted(self, reverter, row_store, live_site):
        settings = SiteSettings(row_store)
        await settings.set("draft_css", "body{margin:8px}")

        result = await reverter.revert()

        assert result.changes.css is True
        assert await settings.get("draft_css") == "body{margin:0}"

    @pytest.mark.asyncio
    async def test_second_revert_cleans_nothing(self, reverter, row_store, live_site):
        row_store.seed(COMPONENTS, [make_row(COMPONENTS)])
        await reverter.revert()

        result = await reverter.revert()

        assert result.cleaned == schemas.RevertCounts()
        assert result.changes.css is False

    @pytest.mark.asyncio
    async def test_stats_and_metrics(self, reverter, row_store, live_site, fake_metrics):
        result = await reverter.revert()

        assert result.stats.tables[PAGES].added == 1
        assert fake_metrics.sessions == [("revert", "success")]


class TestRevertFailures:
    @pytest.mark.asyncio
    async def test_fatal_step(self, reverter, row_store, live_site, fake_metrics):
        row_store.fail_on(PAGES, "upsert")

        result = await reverter.revert()

        assert not result.success
        assert result.message == "Revert finished with errors"
        assert result.errors[0].startswith("Reverting pages")
        # Later tables still ran
        assert result.changes.components == 1
        assert fake_metrics.sessions == [("revert", "partial")]

    @pytest.mark.asyncio
    async def test_non_fatal_step(self, reverter, row_store, live_site):
        row_store.fail_on(ASSETS, "select")

        result = await reverter.revert()

        assert result.success
        assert any(error.startswith("Reverting assets") for error in result.errors)
        assert result.changes.fonts == 1

    @pytest.mark.asyncio
    async def test_failed_items_step_keeps_unpublishable_values(
        self, reverter, row_store, live_site
    ):
        hidden = make_row(
            COLLECTION_ITEMS, collection_id=live_site.collection["id"], is_publishable=False
        )
        hidden_value = make_row(
            COLLECTION_ITEM_VALUES,
            item_id=hidden["id"],
            field_id=live_site.field["id"],
            value="Draft",
        )
        row_store.seed(COLLECTION_ITEMS, [hidden])
        row_store.seed(COLLECTION_ITEM_VALUES, [hidden_value])
        row_store.fail_on(COLLECTION_ITEMS, "upsert")

        result = await reverter.revert()

        assert not result.success
        assert any(error.startswith("Reverting collection items") for error in result.errors)
        assert row_store.get(COLLECTION_ITEMS, hidden["id"], False) is not None
        assert row_store.get(COLLECTION_ITEM_VALUES, hidden_value["id"], False) is not None
        assert result.cleaned.collection_item_values == 0

        retry = await reverter.revert()

        assert retry.success, retry.errors
        assert row_store.get(COLLECTION_ITEM_VALUES, hidden_value["id"], False) is not None
