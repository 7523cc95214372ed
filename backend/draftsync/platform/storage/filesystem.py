"""Filesystem storage backend.

Implements StorageBackend protocol for local filesystem storage.
Works with local development directories and Kubernetes PVC mounts.
"""

import os
from pathlib import Path
from typing import Union

import aiofiles.os

from draftsync.core.logging import logger
from draftsync.platform.storage.exceptions import StorageException
from draftsync.platform.storage.protocol import StorageBackend


class FilesystemBackend(StorageBackend):
    """Filesystem-based storage backend.

    Uses aiofiles for non-blocking file operations.
    """

    def __init__(self, base_path: Union[str, Path]):
        """Initialize filesystem backend.

        Args:
            base_path: Root directory for all storage operations
        """
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"FilesystemBackend initialized at {self.base_path}")

    def _resolve(self, path: str) -> Path:
        """Resolve relative path to absolute, refusing paths that escape the root."""
        normalized = path.replace("/", os.sep)
        full_path = (self.base_path / normalized).resolve()
        if not full_path.is_relative_to(self.base_path) or full_path == self.base_path:
            raise StorageException(f"Path escapes storage root: {path}")
        return full_path

    async def delete_file(self, path: str) -> bool:
        """Delete one file from the filesystem; directories are refused."""
        full_path = self._resolve(path)

        if not await aiofiles.os.path.exists(full_path):
            return False
        if await aiofiles.os.path.isdir(full_path):
            raise StorageException(f"Refusing to delete directory: {path}")

        try:
            await aiofiles.os.remove(full_path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageException(f"Failed to delete file {path}: {e}") from e
        return True
