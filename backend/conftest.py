"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and draftsync/),
making its fixtures available to centralized tests AND colocated domain tests.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables, set before any draftsync module import
# Uses setdefault so real env vars (CI, e2e) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")
os.environ.setdefault("TESTING", "true")


# ---------------------------------------------------------------------------
# Shared fake fixtures, individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def row_store():
    """In-memory RowStore enforcing the schema's keys and cascades."""
    from draftsync.adapters.row_store import InMemoryRowStore

    return InMemoryRowStore()


@pytest.fixture
def fake_metrics():
    """Fake PublishMetrics that records every observation."""
    from draftsync.adapters.metrics import FakePublishMetrics

    return FakePublishMetrics()


@pytest.fixture
def fake_storage_cleaner():
    """Fake StorageCleaner holding seeded keys per bucket."""
    from draftsync.adapters.storage import FakeStorageCleaner

    return FakeStorageCleaner()


@pytest.fixture
def fake_publish_coordinator():
    """Fake PublishCoordinator returning a canned result."""
    from draftsync.domains.publishing.fakes import FakePublishCoordinator

    return FakePublishCoordinator()


@pytest.fixture
def fake_revert_coordinator():
    """Fake RevertCoordinator returning a canned result."""
    from draftsync.domains.publishing.fakes import FakeRevertCoordinator

    return FakeRevertCoordinator()


@pytest.fixture
def fake_collection_publisher():
    """Fake CollectionPublisher with seeded publishable counts."""
    from draftsync.domains.publishing.fakes import FakeCollectionPublisher

    return FakeCollectionPublisher()


@pytest.fixture
def test_container(
    row_store,
    fake_metrics,
    fake_storage_cleaner,
    fake_publish_coordinator,
    fake_revert_coordinator,
    fake_collection_publisher,
):
    """A Container with every service replaced by a fake.

    The orphan reconciler runs for real against the in-memory store.

    For partial overrides, use container.replace():
        custom = test_container.replace(metrics=PrometheusPublishMetrics())
    """
    from draftsync.core.container import Container
    from draftsync.domains.publishing.orphans import OrphanReconciler

    return Container(
        row_store=row_store,
        metrics=fake_metrics,
        storage_cleaner=fake_storage_cleaner,
        publish_coordinator=fake_publish_coordinator,
        revert_coordinator=fake_revert_coordinator,
        collection_publisher=fake_collection_publisher,
        orphan_reconciler=OrphanReconciler(row_store),
    )
