"""Shared exceptions module."""

from typing import Optional


class DraftSyncException(Exception):
    """Base exception for DraftSync services."""

    pass


class ConfigurationError(DraftSyncException):
    """Raised when the row store is unreachable or misconfigured.

    Fatal to a whole publish call: no step is attempted.
    """

    def __init__(self, message: Optional[str] = "Row store is not configured"):
        """Create a new ConfigurationError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class NotFoundException(DraftSyncException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class CollectionNotFoundException(NotFoundException):
    """Raised when a draft collection is not found."""

    pass


class CollectionItemNotFoundException(NotFoundException):
    """Raised when a draft collection item is missing or belongs elsewhere."""

    pass


class InvalidStateError(DraftSyncException):
    """Raised when an operation is not allowed in the current state."""

    def __init__(self, message: Optional[str] = "Invalid state for this operation"):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class RowStoreError(DraftSyncException):
    """Raised when a row store read or write fails."""

    def __init__(self, table: str, operation: str, message: str):
        """Create a new RowStoreError instance.

        Args:
        ----
            table (str): Table the operation targeted.
            operation (str): Store operation name (select, upsert, delete, ...).
            message (str): Underlying error description.

        """
        self.table = table
        self.operation = operation
        self.message = message
        super().__init__(f"Failed to {operation} {table}: {message}")


class SyncBatchError(RowStoreError):
    """Raised when one write batch of a larger sync fails.

    Batches written before the failing one stay committed.
    """

    def __init__(self, table: str, batch_index: int, rows_written: int, cause: Exception):
        """Create a new SyncBatchError instance.

        Args:
        ----
            table (str): Table being written.
            batch_index (int): Zero-based index of the failing batch.
            rows_written (int): Rows committed by earlier batches in the same call.
            cause (Exception): The store error that aborted the batch.

        """
        self.batch_index = batch_index
        self.rows_written = rows_written
        super().__init__(
            table,
            "upsert",
            f"batch {batch_index} failed after {rows_written} rows written ({cause})",
        )
