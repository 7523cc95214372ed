"""Protocol for the external storage collaborator."""

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class StorageCleaner(Protocol):
    """Deletes the bytes behind storage keys collected from deleted rows."""

    async def delete_keys(self, bucket: str, keys: Sequence[str]) -> int:
        """Delete the objects behind ``keys``.

        Args:
            bucket: Logical bucket (``assets`` or ``fonts``)
            keys: Storage paths collected from the deleted rows

        Returns:
            Number of objects actually removed. Missing objects are skipped.
        """
        ...
