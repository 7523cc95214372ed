"""Storage cleanup adapters: filesystem and Fake implementations."""

from draftsync.adapters.storage.cleaner import FakeStorageCleaner, StorageBackendCleaner

__all__ = ["FakeStorageCleaner", "StorageBackendCleaner"]
