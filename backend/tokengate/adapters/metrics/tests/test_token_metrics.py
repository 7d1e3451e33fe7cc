"""Unit tests for token metrics adapters."""

from tokengate.adapters.metrics import FakeTokenMetrics, PrometheusTokenMetrics


# ---------------------------------------------------------------------------
# FakeTokenMetrics
# ---------------------------------------------------------------------------


class TestFakeTokenMetrics:
    """Tests for the FakeTokenMetrics test helper."""

    def test_records_issued_per_type(self):
        fake = FakeTokenMetrics()
        fake.inc_issued("request")
        fake.inc_issued("request")
        fake.inc_issued("access")

        assert fake.issued == {"request": 2, "access": 1}

    def test_failure_kinds_filters_by_operation(self):
        fake = FakeTokenMetrics()
        fake.inc_failure("create_access_token", "verifier_mismatch")
        fake.inc_failure("get_request_token", "token_not_found")

        assert fake.failure_kinds("create_access_token") == ["verifier_mismatch"]

    def test_removed_accumulates_counts(self):
        fake = FakeTokenMetrics()
        fake.inc_removed("access", "client_removed", 2)
        fake.inc_removed("access", "client_removed", 3)

        assert fake.removed[("access", "client_removed")] == 5

    def test_clear_resets_all_state(self):
        fake = FakeTokenMetrics()
        fake.inc_issued("request")
        fake.inc_failure("op", "kind")
        fake.inc_removed("request", "expired")
        fake.clear()

        assert fake.issued == {}
        assert fake.failures == []
        assert fake.removed == {}


# ---------------------------------------------------------------------------
# PrometheusTokenMetrics
# ---------------------------------------------------------------------------


class TestPrometheusTokenMetrics:
    """Tests for the Prometheus adapter."""

    def test_registry_is_separate_from_default(self):
        from prometheus_client import REGISTRY

        adapter = PrometheusTokenMetrics()
        assert adapter.registry is not REGISTRY

    def test_counters_render(self):
        adapter = PrometheusTokenMetrics()
        adapter.inc_issued("request")
        adapter.inc_failure("create_access_token", "invalid_token_state")
        adapter.inc_removed("access", "revoked", 2)

        output = adapter.render().decode()

        assert 'tokengate_tokens_issued_total{token_type="request"} 1.0' in output
        assert (
            "tokengate_operation_failures_total{"
            'operation="create_access_token",kind="invalid_token_state"} 1.0'
        ) in output
        assert 'tokengate_tokens_removed_total{token_type="access",reason="revoked"} 2.0' in output

    def test_zero_removals_are_not_recorded(self):
        adapter = PrometheusTokenMetrics()
        adapter.inc_removed("request", "expired", 0)

        assert "tokengate_tokens_removed_total{" not in adapter.render().decode()
