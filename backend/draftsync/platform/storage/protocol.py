"""Storage backend protocol definition.

Defines the interface that all storage backends must implement.
Uses Python's Protocol for structural subtyping (duck typing with type hints).
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol defining the storage backend interface.

    All paths are relative strings (e.g., "assets/3f2a/logo.png").
    Implementations handle the actual storage location.

    Implementations:
        - FilesystemBackend: Local filesystem or K8s PVC
    """

    async def delete_file(self, path: str) -> bool:
        """Delete a single stored file.

        Returns:
            True if deleted, False if it didn't exist

        Raises:
            StorageException: If the path is a directory or leaves the storage root
        """
        ...
