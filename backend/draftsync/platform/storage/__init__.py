"""File storage backends."""

from draftsync.platform.storage.exceptions import StorageException
from draftsync.platform.storage.filesystem import FilesystemBackend
from draftsync.platform.storage.protocol import StorageBackend

__all__ = ["FilesystemBackend", "StorageBackend", "StorageException"]
