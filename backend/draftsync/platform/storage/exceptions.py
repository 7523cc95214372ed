"""Storage exceptions."""


class StorageException(Exception):
    """Base exception for storage operations."""

    pass
