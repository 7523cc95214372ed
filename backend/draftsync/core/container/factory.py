"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations.

Design principles:
- Single place for all wiring decisions
- Fail fast: broken wiring crashes at startup
- Testable: can unit test factory logic with mock settings
"""

from prometheus_client import CollectorRegistry

from draftsync.adapters.metrics import PrometheusPublishMetrics
from draftsync.adapters.row_store import SqlAlchemyRowStore
from draftsync.adapters.storage import StorageBackendCleaner
from draftsync.core.config import Settings
from draftsync.core.config.enums import StorageBackendType
from draftsync.core.container.container import Container
from draftsync.core.exceptions import ConfigurationError
from draftsync.core.logging import logger
from draftsync.core.protocols import StorageCleaner
from draftsync.domains.publishing.collections import CollectionPublisher
from draftsync.domains.publishing.coordinator import PublishCoordinator
from draftsync.domains.publishing.orphans import OrphanReconciler
from draftsync.domains.publishing.revert import RevertCoordinator
from draftsync.domains.publishing.row_access import RowAccess
from draftsync.platform.storage import FilesystemBackend


def create_container(settings: Settings) -> Container:
    """Build container with environment-appropriate implementations.

    This is the single source of truth for dependency wiring.

    Args:
        settings: Application settings (from core/config)

    Returns:
        Fully constructed Container ready for use

    Raises:
        ConfigurationError: The settings cannot produce a working store or storage.
    """
    if not settings.SQLALCHEMY_ASYNC_DATABASE_URI:
        raise ConfigurationError("SQLALCHEMY_ASYNC_DATABASE_URI is not configured")

    # -----------------------------------------------------------------
    # Row store and shared accessor (page size and batch bounds)
    # -----------------------------------------------------------------
    row_store = SqlAlchemyRowStore()
    access = RowAccess(
        row_store,
        page_size=settings.PUBLISH_QUERY_PAGE_SIZE,
        write_batch_size=settings.PUBLISH_WRITE_BATCH_SIZE,
        lookup_chunk_size=settings.PUBLISH_LOOKUP_CHUNK_SIZE,
    )

    # -----------------------------------------------------------------
    # Metrics (Prometheus adapter on a dedicated registry)
    # -----------------------------------------------------------------
    registry = CollectorRegistry()
    metrics = PrometheusPublishMetrics(registry=registry)

    storage_cleaner = _create_storage_cleaner(settings)

    collection_publisher = CollectionPublisher(row_store, access=access)

    logger.info(
        f"Container built (environment={settings.ENVIRONMENT.value}, "
        f"storage={settings.STORAGE_BACKEND.value})"
    )
    return Container(
        row_store=row_store,
        metrics=metrics,
        storage_cleaner=storage_cleaner,
        publish_coordinator=PublishCoordinator(
            row_store,
            storage_cleaner,
            metrics,
            collection_publisher=collection_publisher,
            access=access,
        ),
        revert_coordinator=RevertCoordinator(row_store, storage_cleaner, metrics, access=access),
        collection_publisher=collection_publisher,
        orphan_reconciler=OrphanReconciler(row_store, access=access),
        metrics_registry=registry,
    )


def _create_storage_cleaner(settings: Settings) -> StorageCleaner:
    """Build the storage cleaner for the configured backend."""
    if settings.STORAGE_BACKEND == StorageBackendType.FILESYSTEM:
        return StorageBackendCleaner(FilesystemBackend(settings.STORAGE_PATH))
    raise ConfigurationError(f"Unsupported storage backend: {settings.STORAGE_BACKEND}")
