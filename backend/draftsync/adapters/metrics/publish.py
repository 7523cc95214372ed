"""Publish session metrics adapters (Prometheus + Fake).

Prometheus implementation uses a caller-supplied CollectorRegistry so
these metrics can be served alongside any others on the same
``/metrics`` endpoint.
"""

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram

from draftsync.core.protocols.metrics import PublishMetrics

_STEP_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


class PrometheusPublishMetrics(PublishMetrics):
    """Prometheus-backed publish/revert metrics collection."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._sessions_total = Counter(
            "draftsync_sessions_total",
            "Total publish and revert sessions",
            ["operation", "outcome"],
            registry=self._registry,
        )

        self._step_duration = Histogram(
            "draftsync_step_duration_seconds",
            "Duration of per-table session steps in seconds",
            ["operation", "table"],
            buckets=_STEP_DURATION_BUCKETS,
            registry=self._registry,
        )

        self._rows_total = Counter(
            "draftsync_rows_total",
            "Rows written by publish and revert sessions",
            ["table", "action"],
            registry=self._registry,
        )

    # -- PublishMetrics protocol methods --

    def inc_session(self, operation: str, outcome: str) -> None:
        self._sessions_total.labels(operation=operation, outcome=outcome).inc()

    def observe_step_duration(self, operation: str, table: str, duration: float) -> None:
        self._step_duration.labels(operation=operation, table=table).observe(duration)

    def inc_rows(self, table: str, action: str, count: int) -> None:
        self._rows_total.labels(table=table, action=action).inc(count)


# ---------------------------------------------------------------------------
# Fake
# ---------------------------------------------------------------------------


@dataclass
class StepDurationRecord:
    """Single observed step duration."""

    operation: str
    table: str
    duration: float


class FakePublishMetrics(PublishMetrics):
    """In-memory spy implementing the PublishMetrics protocol."""

    def __init__(self) -> None:
        self.sessions: list[tuple[str, str]] = []
        self.step_durations: list[StepDurationRecord] = []
        self.rows: dict[tuple[str, str], int] = {}

    def inc_session(self, operation: str, outcome: str) -> None:
        self.sessions.append((operation, outcome))

    def observe_step_duration(self, operation: str, table: str, duration: float) -> None:
        self.step_durations.append(StepDurationRecord(operation, table, duration))

    def inc_rows(self, table: str, action: str, count: int) -> None:
        self.rows[(table, action)] = self.rows.get((table, action), 0) + count

    # -- test helpers --

    def clear(self) -> None:
        """Reset all recorded state."""
        self.sessions.clear()
        self.step_durations.clear()
        self.rows.clear()
