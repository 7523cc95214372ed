"""Fixtures for publishing domain tests."""

import pytest

from draftsync.domains.publishing.row_access import RowAccess


@pytest.fixture
def access(row_store):
    """Accessor with tiny page and batch sizes so pagination and batching run."""
    return RowAccess(row_store, page_size=2, write_batch_size=2, lookup_chunk_size=2)
