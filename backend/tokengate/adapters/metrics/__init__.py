"""Metrics adapters: Prometheus and Fake implementations.

Re-exports every public adapter so consumers can import directly from
``tokengate.adapters.metrics``.
"""

from tokengate.adapters.metrics.tokens import (
    FailureRecord,
    FakeTokenMetrics,
    PrometheusTokenMetrics,
)

__all__ = [
    "FailureRecord",
    "FakeTokenMetrics",
    "PrometheusTokenMetrics",
]
