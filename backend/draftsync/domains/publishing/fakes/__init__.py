"""Fake implementations for publishing domain testing."""

from draftsync.domains.publishing.fakes.collection_publisher import FakeCollectionPublisher
from draftsync.domains.publishing.fakes.coordinator import (
    FakePublishCoordinator,
    FakeRevertCoordinator,
)

__all__ = ["FakeCollectionPublisher", "FakePublishCoordinator", "FakeRevertCoordinator"]
