"""Tests for the collection publisher."""

from dataclasses import dataclass
from typing import Dict, List
from uuid import uuid4

import pytest

from draftsync.core.exceptions import (
    CollectionItemNotFoundException,
    CollectionNotFoundException,
)
from draftsync.domains.publishing.collections import CollectionPublisher
from draftsync.domains.publishing.tables import (
    COLLECTION_FIELDS,
    COLLECTION_ITEM_VALUES,
    COLLECTION_ITEMS,
    COLLECTIONS,
)
from draftsync.domains.publishing.tests.rows import make_row
from draftsync.domains.publishing.types import CollectionPublishRequest

DELETED = "2024-01-01T00:00:00+00:00"


@dataclass
class BlogFixture:
    """Draft rows of one collection with two fields and two items."""

    collection: Dict
    fields: List[Dict]
    items: List[Dict]
    values: List[Dict]

    @property
    def id(self):
        return self.collection["id"]


def seed_blog(store, items: int = 2) -> BlogFixture:
    collection = make_row(COLLECTIONS, name="Blog")
    fields = [
        make_row(COLLECTION_FIELDS, collection_id=collection["id"], key="title", order=0),
        make_row(COLLECTION_FIELDS, collection_id=collection["id"], key="body", order=1),
    ]
    item_rows = [
        make_row(COLLECTION_ITEMS, collection_id=collection["id"], manual_order=i)
        for i in range(items)
    ]
    values = [
        make_row(
            COLLECTION_ITEM_VALUES,
            item_id=item["id"],
            field_id=field["id"],
            value=f"{field['key']}-{n}",
        )
        for n, item in enumerate(item_rows)
        for field in fields
    ]
    store.seed(COLLECTIONS, [collection])
    store.seed(COLLECTION_FIELDS, fields)
    store.seed(COLLECTION_ITEMS, item_rows)
    store.seed(COLLECTION_ITEM_VALUES, values)
    return BlogFixture(collection=collection, fields=fields, items=item_rows, values=values)


def _edit(store, table, row, **changes):
    updated = {**row, **changes}
    store.seed(table, [updated])
    return updated


class TestPublishCollection:
    """publish_collection runs metadata, fields, items, values, cleanup in order."""

    @pytest.mark.asyncio
    async def test_first_publish(self, row_store, access):
        blog = seed_blog(row_store)

        result = await CollectionPublisher(row_store, access).publish_collection(blog.id)

        assert result.success
        assert result.collection
        assert (result.fields_count, result.items_count, result.values_count) == (2, 2, 4)
        assert list(result.timing) == ["collections", "fields", "items", "values", "cleanup"]
        assert len(row_store.rows(COLLECTION_ITEM_VALUES, True)) == 4

    @pytest.mark.asyncio
    async def test_second_publish_writes_nothing(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)

        result = await publisher.publish_collection(blog.id)

        assert not result.collection
        assert (result.fields_count, result.items_count, result.values_count) == (0, 0, 0)
        assert await publisher.get_publishable_count(blog.id) == 0

    @pytest.mark.asyncio
    async def test_changed_value_only(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)
        edited = _edit(row_store, COLLECTION_ITEM_VALUES, blog.values[0], value="changed")

        assert await publisher.get_publishable_count(blog.id) == 1
        result = await publisher.publish_collection(blog.id)

        assert (result.items_count, result.values_count) == (0, 1)
        assert row_store.get(COLLECTION_ITEM_VALUES, edited["id"], True)["value"] == "changed"

    @pytest.mark.asyncio
    async def test_unpublishable_item_is_not_published(self, row_store, access):
        blog = seed_blog(row_store)
        _edit(row_store, COLLECTION_ITEMS, blog.items[1], is_publishable=False)

        result = await CollectionPublisher(row_store, access).publish_collection(blog.id)

        assert result.items_count == 1
        assert row_store.get(COLLECTION_ITEMS, blog.items[1]["id"], True) is None
        assert {v["item_id"] for v in row_store.rows(COLLECTION_ITEM_VALUES, True)} == {
            blog.items[0]["id"]
        }

    @pytest.mark.asyncio
    async def test_item_made_unpublishable_is_unpublished(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)
        _edit(row_store, COLLECTION_ITEMS, blog.items[0], is_publishable=False)

        result = await publisher.publish_collection(blog.id)

        assert result.items_deleted == 1
        assert row_store.get(COLLECTION_ITEMS, blog.items[0]["id"], True) is None
        assert row_store.get(COLLECTION_ITEMS, blog.items[0]["id"], False) is not None
        assert all(
            v["item_id"] != blog.items[0]["id"]
            for v in row_store.rows(COLLECTION_ITEM_VALUES, True)
        )

    @pytest.mark.asyncio
    async def test_soft_deleted_item_is_removed_on_both_sides(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)
        _edit(row_store, COLLECTION_ITEMS, blog.items[0], deleted_at=DELETED)

        result = await publisher.publish_collection(blog.id)

        assert result.items_deleted == 1
        for side in (True, False):
            assert row_store.get(COLLECTION_ITEMS, blog.items[0]["id"], side) is None
        assert len(row_store.rows(COLLECTION_ITEM_VALUES, True)) == 2

    @pytest.mark.asyncio
    async def test_soft_deleted_field_is_removed_with_its_values(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)
        body = blog.fields[1]
        _edit(row_store, COLLECTION_FIELDS, body, deleted_at=DELETED)

        result = await publisher.publish_collection(blog.id)

        assert result.fields_deleted == 1
        for side in (True, False):
            assert row_store.get(COLLECTION_FIELDS, body["id"], side) is None
            assert all(
                v["field_id"] != body["id"] for v in row_store.rows(COLLECTION_ITEM_VALUES, side)
            )

    @pytest.mark.asyncio
    async def test_new_field_values_wait_for_the_field(self, row_store, access):
        """Values are only published once their field has a published row."""
        blog = seed_blog(row_store, items=1)

        await CollectionPublisher(row_store, access).publish_collection(blog.id)

        published_fields = {f["id"] for f in row_store.rows(COLLECTION_FIELDS, True)}
        for value in row_store.rows(COLLECTION_ITEM_VALUES, True):
            assert value["field_id"] in published_fields

    @pytest.mark.asyncio
    async def test_explicit_item_ids(self, row_store, access):
        blog = seed_blog(row_store)

        result = await CollectionPublisher(row_store, access).publish_collection(
            blog.id, item_ids=[blog.items[1]["id"]]
        )

        assert result.items_count == 1
        assert [r["id"] for r in row_store.rows(COLLECTION_ITEMS, True)] == [blog.items[1]["id"]]

    @pytest.mark.asyncio
    async def test_item_from_other_collection_is_rejected(self, row_store, access):
        blog = seed_blog(row_store)
        other = seed_blog(row_store)

        with pytest.raises(CollectionItemNotFoundException):
            await CollectionPublisher(row_store, access).publish_collection(
                blog.id, item_ids=[other.items[0]["id"]]
            )
        assert row_store.rows(COLLECTIONS, True) == []

    @pytest.mark.asyncio
    async def test_unknown_collection(self, row_store, access):
        with pytest.raises(CollectionNotFoundException):
            await CollectionPublisher(row_store, access).publish_collection(uuid4())

    @pytest.mark.asyncio
    async def test_deleted_collection_is_purged(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)
        _edit(row_store, COLLECTIONS, blog.collection, deleted_at=DELETED)

        result = await publisher.publish_collection(blog.id)

        assert result.purged and result.success
        for table in (COLLECTIONS, COLLECTION_FIELDS, COLLECTION_ITEMS, COLLECTION_ITEM_VALUES):
            assert row_store.rows(table) == []


class TestPublishCollections:
    @pytest.mark.asyncio
    async def test_failure_is_isolated(self, row_store, access):
        blog = seed_blog(row_store)
        missing = uuid4()

        batch = await CollectionPublisher(row_store, access).publish_collections(
            [CollectionPublishRequest(missing), CollectionPublishRequest(blog.id)]
        )

        assert (batch.summary.total, batch.summary.succeeded, batch.summary.failed) == (2, 1, 1)
        assert not batch.results[0].success
        assert str(missing) in batch.results[0].errors[0]
        assert batch.results[1].success


class TestQueries:
    """Read-only helpers used by the editor."""

    @pytest.mark.asyncio
    async def test_publishable_count_of_fresh_collection(self, row_store, access):
        blog = seed_blog(row_store, items=3)
        assert await CollectionPublisher(row_store, access).get_publishable_count(blog.id) == 3

    @pytest.mark.asyncio
    async def test_publishable_count_ignores_never_published_unpublishable(
        self, row_store, access
    ):
        blog = seed_blog(row_store)
        _edit(row_store, COLLECTION_ITEMS, blog.items[0], is_publishable=False)

        assert await CollectionPublisher(row_store, access).get_publishable_count(blog.id) == 1

    @pytest.mark.asyncio
    async def test_publishable_count_failure_is_zero(self, row_store, access):
        blog = seed_blog(row_store)
        row_store.fail_on(COLLECTION_ITEMS, "select")

        assert await CollectionPublisher(row_store, access).get_publishable_count(blog.id) == 0

    @pytest.mark.asyncio
    async def test_publishable_counts(self, row_store, access):
        a, b = seed_blog(row_store, items=1), seed_blog(row_store, items=2)

        counts = await CollectionPublisher(row_store, access).get_publishable_counts(
            [a.id, b.id]
        )

        assert counts == {a.id: 1, b.id: 2}

    @pytest.mark.asyncio
    async def test_needs_publishing(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        assert await publisher.needs_publishing(blog.id)

        await publisher.publish_collection(blog.id)
        assert not await publisher.needs_publishing(blog.id)

        _edit(row_store, COLLECTIONS, blog.collection, name="Journal")
        assert await publisher.needs_publishing(blog.id)

    @pytest.mark.asyncio
    async def test_needs_publishing_after_field_edit(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)

        _edit(row_store, COLLECTION_FIELDS, blog.fields[0], hidden=True)

        assert await publisher.needs_publishing(blog.id)

    @pytest.mark.asyncio
    async def test_needs_publishing_after_item_delete(self, row_store, access):
        blog = seed_blog(row_store)
        publisher = CollectionPublisher(row_store, access)
        await publisher.publish_collection(blog.id)

        _edit(row_store, COLLECTION_ITEMS, blog.items[0], deleted_at=DELETED)

        assert await publisher.needs_publishing(blog.id)

    @pytest.mark.asyncio
    async def test_needs_publishing_unknown_collection(self, row_store, access):
        assert not await CollectionPublisher(row_store, access).needs_publishing(uuid4())

    @pytest.mark.asyncio
    async def test_group_items_by_collection(self, row_store, access):
        a, b = seed_blog(row_store), seed_blog(row_store, items=1)
        ids = [b.items[0]["id"], a.items[1]["id"], uuid4(), a.items[0]["id"], a.items[1]["id"]]

        grouped = await CollectionPublisher(row_store, access).group_items_by_collection(ids)

        assert grouped == {
            b.id: [b.items[0]["id"]],
            a.id: [a.items[1]["id"], a.items[0]["id"]],
        }

    @pytest.mark.asyncio
    async def test_cleanup_deleted_collections(self, row_store, access):
        keep, drop = seed_blog(row_store), seed_blog(row_store)
        _edit(row_store, COLLECTIONS, drop.collection, deleted_at=DELETED)

        purged = await CollectionPublisher(row_store, access).cleanup_deleted_collections()

        assert purged == 1
        assert [r["id"] for r in row_store.rows(COLLECTIONS)] == [keep.id]
        assert {r["collection_id"] for r in row_store.rows(COLLECTION_ITEMS)} == {keep.id}
