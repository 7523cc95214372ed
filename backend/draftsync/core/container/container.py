"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
It has no construction logic; that belongs in the factory.

Design principles:
- Container serves, factory builds
- Fail fast: all construction at startup
- Type safety: fields are protocol types
- Testing: construct directly with fakes
"""

from dataclasses import dataclass, replace
from typing import Any, Optional

from prometheus_client import CollectorRegistry

from draftsync.core.protocols import PublishMetrics, RowStore, StorageCleaner
from draftsync.domains.publishing.protocols import (
    CollectionPublisherProtocol,
    OrphanReconcilerProtocol,
    PublishCoordinatorProtocol,
    RevertCoordinatorProtocol,
)


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: use the global container built by factory
        from draftsync.core import container as container_mod
        result = await container_mod.container.publish_coordinator.publish(scope)

        # Testing: construct directly with fakes
        test_container = Container(
            row_store=InMemoryRowStore(),
            metrics=FakePublishMetrics(),
            ...
        )

        # FastAPI endpoints: use Inject() to pull individual protocols
        from draftsync.api.deps import Inject
        async def publish(coordinator=Inject(PublishCoordinatorProtocol)):
            ...
    """

    # Relational store holding both draft and published rows
    row_store: RowStore

    # Publish/revert session metrics
    metrics: PublishMetrics

    # Deletes stored bytes behind purged asset and font rows
    storage_cleaner: StorageCleaner

    # Publishing domain
    publish_coordinator: PublishCoordinatorProtocol
    revert_coordinator: RevertCoordinatorProtocol
    collection_publisher: CollectionPublisherProtocol
    orphan_reconciler: OrphanReconcilerProtocol

    # Registry backing the Prometheus adapters; None when metrics are faked
    metrics_registry: Optional[CollectorRegistry] = None

    # -----------------------------------------------------------------
    # Convenience methods
    # -----------------------------------------------------------------

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Useful for partial overrides in tests:

            modified = container.replace(metrics=FakePublishMetrics())

        Args:
            **changes: Dependency name -> new implementation

        Returns:
            New Container with specified dependencies replaced
        """
        return replace(self, **changes)
