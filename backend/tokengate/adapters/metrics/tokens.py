"""Token lifecycle metrics adapters (Prometheus + Fake).

Prometheus implementation creates a dedicated CollectorRegistry so token
metrics are isolated from the default global registry.
"""

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, generate_latest

from tokengate.core.protocols.metrics import TokenMetrics


class PrometheusTokenMetrics(TokenMetrics):
    """Prometheus-backed token lifecycle metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._issued = Counter(
            "tokengate_tokens_issued_total",
            "Tokens issued",
            ["token_type"],
            registry=self._registry,
        )

        self._failures = Counter(
            "tokengate_operation_failures_total",
            "Caller-facing lifecycle failures",
            ["operation", "kind"],
            registry=self._registry,
        )

        self._removed = Counter(
            "tokengate_tokens_removed_total",
            "Tokens removed from the store",
            ["token_type", "reason"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def render(self) -> bytes:
        """Serialize the registry in Prometheus text exposition format."""
        return generate_latest(self._registry)

    # -- TokenMetrics protocol methods --

    def inc_issued(self, token_type: str) -> None:
        self._issued.labels(token_type=token_type).inc()

    def inc_failure(self, operation: str, kind: str) -> None:
        self._failures.labels(operation=operation, kind=kind).inc()

    def inc_removed(self, token_type: str, reason: str, count: int = 1) -> None:
        if count > 0:
            self._removed.labels(token_type=token_type, reason=reason).inc(count)


# ---------------------------------------------------------------------------
# Fake
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FailureRecord:
    """Single recorded failure."""

    operation: str
    kind: str


class FakeTokenMetrics(TokenMetrics):
    """In-memory spy implementing the TokenMetrics protocol."""

    def __init__(self) -> None:
        self.issued: dict[str, int] = {}
        self.failures: list[FailureRecord] = []
        self.removed: dict[tuple[str, str], int] = {}

    def inc_issued(self, token_type: str) -> None:
        self.issued[token_type] = self.issued.get(token_type, 0) + 1

    def inc_failure(self, operation: str, kind: str) -> None:
        self.failures.append(FailureRecord(operation=operation, kind=kind))

    def inc_removed(self, token_type: str, reason: str, count: int = 1) -> None:
        key = (token_type, reason)
        self.removed[key] = self.removed.get(key, 0) + count

    # -- test helpers --

    def failure_kinds(self, operation: str) -> list[str]:
        """Return the recorded failure kinds for one operation."""
        return [f.kind for f in self.failures if f.operation == operation]

    def clear(self) -> None:
        """Reset all recorded state."""
        self.issued.clear()
        self.failures.clear()
        self.removed.clear()
