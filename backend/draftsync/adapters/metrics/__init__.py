"""Metrics adapters: Prometheus and Fake implementations.

Re-exports every public adapter so consumers can import directly from
``draftsync.adapters.metrics``.
"""

from draftsync.adapters.metrics.publish import (
    FakePublishMetrics,
    PrometheusPublishMetrics,
    StepDurationRecord,
)

__all__ = [
    "FakePublishMetrics",
    "PrometheusPublishMetrics",
    "StepDurationRecord",
]
