"""Tests for the content hash backfill."""

import pytest

from draftsync.domains.publishing.backfill import backfill_content_hashes
from draftsync.domains.publishing.fingerprint import fingerprint
from draftsync.domains.publishing.tables import COLLECTIONS, COMPONENTS
from draftsync.domains.publishing.tests.rows import hashed, make_row


class TestBackfill:
    @pytest.mark.asyncio
    async def test_fills_missing_hashes_on_drafts(self, row_store, access):
        legacy = make_row(COMPONENTS, name="legacy")
        current = hashed(COMPONENTS, make_row(COMPONENTS))
        published_legacy = make_row(COMPONENTS, is_published=True)
        row_store.seed(COMPONENTS, [legacy, current, published_legacy])

        count = await backfill_content_hashes(row_store, COMPONENTS, access=access)

        assert count == 1
        stored = row_store.get(COMPONENTS, legacy["id"], False)
        assert stored["content_hash"] == fingerprint(COMPONENTS, legacy)
        assert row_store.get(COMPONENTS, published_legacy["id"], True)["content_hash"] is None

    @pytest.mark.asyncio
    async def test_second_run_finds_nothing(self, row_store, access):
        row_store.seed(COMPONENTS, [make_row(COMPONENTS) for _ in range(3)])

        assert await backfill_content_hashes(row_store, COMPONENTS, access=access) == 3
        assert await backfill_content_hashes(row_store, COMPONENTS, access=access) == 0

    @pytest.mark.asyncio
    async def test_table_without_hash_column(self, row_store):
        with pytest.raises(ValueError):
            await backfill_content_hashes(row_store, COLLECTIONS)
