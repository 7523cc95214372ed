"""Storage cleaner adapters.

Removes the stored bytes behind asset and font rows that a publish or
revert deleted. Cleanup is best effort: a key that cannot be removed is
logged and skipped, never raised to the session.
"""

import posixpath
from typing import Dict, List, Optional, Sequence, Set

from draftsync.core.logging import logger
from draftsync.core.protocols.storage import StorageCleaner
from draftsync.platform.storage.protocol import StorageBackend


def object_path(bucket: str, key: str) -> Optional[str]:
    """Path of ``key`` inside ``bucket``, or None when it does not name an object there.

    Keys that normalize to the bucket itself or climb out of it are rejected.
    """
    if not bucket or "/" in bucket or bucket in (".", ".."):
        return None
    normalized = posixpath.normpath(key.lstrip("/")) if key else ""
    if normalized in ("", ".", "..") or normalized.startswith("../"):
        return None
    return f"{bucket}/{normalized}"


class StorageBackendCleaner(StorageCleaner):
    """StorageCleaner on top of a StorageBackend.

    Keys are stored under ``<bucket>/<key>`` in the backend. Only single
    files strictly inside the bucket are ever deleted.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend

    async def delete_keys(self, bucket: str, keys: Sequence[str]) -> int:
        removed = 0
        for key in dict.fromkeys(keys):
            path = object_path(bucket, key)
            if path is None:
                logger.warning(f"Skipping storage key outside bucket {bucket}: {key!r}")
                continue
            try:
                if await self._backend.delete_file(path):
                    removed += 1
                else:
                    logger.debug(f"Storage key already gone: {path}")
            except Exception as e:
                logger.warning(f"Failed to delete stored file {path}: {e}")
        return removed


# ---------------------------------------------------------------------------
# Fake
# ---------------------------------------------------------------------------


class FakeStorageCleaner(StorageCleaner):
    """In-memory spy implementing the StorageCleaner protocol."""

    def __init__(self) -> None:
        self.objects: Dict[str, Set[str]] = {}
        self.deleted: List[tuple[str, str]] = []
        self._calls: list[tuple] = []

    def seed(self, bucket: str, keys: Sequence[str]) -> None:
        """Register stored objects."""
        self.objects.setdefault(bucket, set()).update(keys)

    async def delete_keys(self, bucket: str, keys: Sequence[str]) -> int:
        self._calls.append(("delete_keys", bucket, list(keys)))
        stored = self.objects.get(bucket, set())
        removed = 0
        for key in dict.fromkeys(keys):
            if key in stored:
                stored.discard(key)
                self.deleted.append((bucket, key))
                removed += 1
        return removed
