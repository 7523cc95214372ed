"""Metrics protocols for dependency injection.

- PublishMetrics: publish/revert session instrumentation
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class PublishMetrics(Protocol):
    """Protocol for publish/revert session metrics collection."""

    def inc_session(self, operation: str, outcome: str) -> None:
        """Count a finished session.

        Args:
            operation: ``publish`` or ``revert``.
            outcome: ``success`` or ``partial``.
        """
        ...

    def observe_step_duration(self, operation: str, table: str, duration: float) -> None:
        """Record how long one table step took, in seconds."""
        ...

    def inc_rows(self, table: str, action: str, count: int) -> None:
        """Count rows written for a table.

        Args:
            table: Table name.
            action: ``added``, ``updated`` or ``deleted``.
            count: Number of rows.
        """
        ...
