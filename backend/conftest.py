"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and tokengate/),
making its fixtures available to centralized tests AND colocated domain tests.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables: must be set before any tokengate module import.
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("TOKENGATE_ENVIRONMENT", "test")
os.environ.setdefault("TOKENGATE_TOKEN_STORE_BACKEND", "memory")
os.environ.setdefault("TOKENGATE_LOG_LEVEL", "WARNING")


# ---------------------------------------------------------------------------
# Shared fake fixtures: individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_client_registry():
    """Fake ClientRegistry seeded via .seed()."""
    from tokengate.domains.clients.fakes import FakeClientRegistry

    return FakeClientRegistry()


@pytest.fixture
def fake_permission_catalog():
    """Fake PermissionCatalog seeded via .seed() / .seed_names()."""
    from tokengate.domains.permissions.fakes import FakePermissionCatalog

    return FakePermissionCatalog()


@pytest.fixture
def fake_token_generator():
    """Deterministic token generator."""
    from tokengate.domains.tokens.fakes import FakeTokenGenerator

    return FakeTokenGenerator()


@pytest.fixture
def fake_token_metrics():
    """Spy recording token lifecycle counters."""
    from tokengate.adapters.metrics import FakeTokenMetrics

    return FakeTokenMetrics()


@pytest.fixture
def test_container(
    fake_client_registry,
    fake_permission_catalog,
    fake_token_generator,
    fake_token_metrics,
):
    """A Container wired with fakes around a real in-memory token store.

    For partial overrides, use container.replace():
        flaky = test_container.replace(token_store=FlakyTokenStore())
    """
    from tokengate.core.container import Container
    from tokengate.core.sweeper import ExpiredTokenSweeper
    from tokengate.domains.tokens.memory_store import InMemoryTokenStore
    from tokengate.domains.tokens.service import TokenLifecycleService

    store = InMemoryTokenStore(lock_stripes=8)
    service = TokenLifecycleService(
        store=store,
        client_registry=fake_client_registry,
        permission_catalog=fake_permission_catalog,
        generator=fake_token_generator,
        metrics=fake_token_metrics,
    )
    return Container(
        client_registry=fake_client_registry,
        permission_catalog=fake_permission_catalog,
        token_store=store,
        token_generator=fake_token_generator,
        token_metrics=fake_token_metrics,
        token_service=service,
        sweeper=ExpiredTokenSweeper(service, interval=0.01),
    )
