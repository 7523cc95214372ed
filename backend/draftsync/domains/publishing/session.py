"""Shared bookkeeping for publish and revert sessions.

A session is a scope for error aggregation and timing, not a transaction:
every store call commits on its own and a failed step leaves earlier steps
in place. Safety on retry comes from idempotent upserts.
"""

import time
from typing import Awaitable, Callable, List, Optional, TypeVar
from uuid import UUID, uuid4

from draftsync import schemas
from draftsync.core.logging import ContextualLogger, logger
from draftsync.core.protocols.metrics import PublishMetrics

T = TypeVar("T")


class SessionRunner:
    """Runs named steps, catching each step's failure into the error list."""

    def __init__(
        self,
        operation: str,
        metrics: PublishMetrics,
        session_id: Optional[UUID] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        """Start a session for ``operation`` (``publish`` or ``revert``)."""
        self.operation = operation
        self.session_id = session_id or uuid4()
        self.logger = (log or logger).with_context(
            session_id=str(self.session_id), operation=operation
        )
        self.stats = schemas.SessionStats()
        self.errors: List[str] = []
        self.failed = False
        self.last_duration_ms = 0
        self._metrics = metrics
        self._phase = 0
        self._started = time.time()

    @property
    def success(self) -> bool:
        return not self.failed

    async def step(
        self, name: str, fn: Callable[[], Awaitable[T]], *, fatal: bool = True
    ) -> Optional[T]:
        """Run one step.

        Args:
            name: Human readable step name, used in logs and error messages.
            fn: Coroutine factory doing the work.
            fatal: When False a failure is recorded in ``errors`` but does not
                mark the session unsuccessful.

        Returns:
            The step's return value, or None when it failed.
        """
        self._phase += 1
        phase = self._phase
        start = time.time()
        self.logger.info(f"🚀 PHASE {phase}: {name}...")
        try:
            value = await fn()
        except Exception as e:
            self.last_duration_ms = int((time.time() - start) * 1000)
            self.errors.append(f"{name}: {e}")
            if fatal:
                self.failed = True
                self.logger.error(f"❌ PHASE {phase} failed: {name}: {e}", exc_info=True)
            else:
                self.logger.warning(f"PHASE {phase} failed (non-fatal): {name}: {e}")
            return None
        self.last_duration_ms = int((time.time() - start) * 1000)
        self.logger.info(f"✅ PHASE {phase} complete ({time.time() - start:.2f}s)")
        return value

    def record(
        self,
        table: str,
        *,
        added: int = 0,
        updated: int = 0,
        deleted: int = 0,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Add row counts and timing for ``table`` to the stats and metrics."""
        entry = self.stats.table(table)
        entry.added += added
        entry.updated += updated
        entry.deleted += deleted
        duration = self.last_duration_ms if duration_ms is None else duration_ms
        entry.duration_ms += duration
        self._metrics.observe_step_duration(self.operation, table, duration / 1000)
        for action, count in (("added", added), ("updated", updated), ("deleted", deleted)):
            if count:
                self._metrics.inc_rows(table, action, count)

    def fail(self, message: str) -> None:
        """Record a failure that happened outside any step."""
        self.errors.append(message)
        self.failed = True
        self.logger.error(message)

    def finish(self) -> schemas.SessionStats:
        """Close the session: total duration, outcome metric and a summary log line."""
        self.stats.total_duration_ms = int((time.time() - self._started) * 1000)
        outcome = "success" if self.success else "partial"
        self._metrics.inc_session(self.operation, outcome)
        self.logger.info(
            f"{self.operation} finished ({outcome}) in {self.stats.total_duration_ms}ms "
            f"with {len(self.errors)} errors"
        )
        return self.stats
