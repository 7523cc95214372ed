"""Fake publish and revert coordinators for testing."""

from typing import Optional

from draftsync import schemas


class FakePublishCoordinator:
    """In-memory fake for PublishCoordinatorProtocol."""

    def __init__(self) -> None:
        """Initialize with a successful empty result."""
        self._calls: list[tuple] = []
        self._result = schemas.PublishResult()

    def set_result(self, result: schemas.PublishResult) -> None:
        """Configure publish() return value."""
        self._result = result

    async def publish(self, scope: schemas.PublishScope) -> schemas.PublishResult:
        """Record call and return canned result."""
        self._calls.append(("publish", scope))
        return self._result


class FakeRevertCoordinator:
    """In-memory fake for RevertCoordinatorProtocol."""

    def __init__(self) -> None:
        """Initialize with a successful empty result."""
        self._calls: list[tuple] = []
        self._result = schemas.RevertResult()
        self._should_raise: Optional[Exception] = None

    def set_result(self, result: schemas.RevertResult) -> None:
        """Configure revert() return value."""
        self._result = result

    def set_error(self, error: Exception) -> None:
        """Make revert() raise this error."""
        self._should_raise = error

    async def revert(self) -> schemas.RevertResult:
        """Record call and return canned result."""
        self._calls.append(("revert",))
        if self._should_raise:
            raise self._should_raise
        return self._result
