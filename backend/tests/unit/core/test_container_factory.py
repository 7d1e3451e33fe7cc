"""Tests for create_container and the global container lifecycle."""

import json

import pytest
from prometheus_client import CollectorRegistry

from tokengate.adapters.metrics import PrometheusTokenMetrics
from tokengate.core import container as container_module
from tokengate.core.config import Settings
from tokengate.core.container import create_container, initialize_container
from tokengate.core.container.container import Container
from tokengate.domains.tokens.memory_store import InMemoryTokenStore
from tokengate.domains.tokens.service import TokenLifecycleService
from tokengate.domains.tokens.sql_store import SqlTokenStore


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def seed_files(tmp_path):
    clients = tmp_path / "clients.json"
    clients.write_text(
        json.dumps(
            [
                {
                    "client_id": "C1",
                    "client_secret": "s1",
                    "application_name": "One",
                    "allowed_permissions": ["read"],
                }
            ]
        )
    )
    permissions = tmp_path / "permissions.json"
    permissions.write_text(
        json.dumps([{"permission": "read", "description": "Read", "is_default": True}])
    )
    return clients, permissions


@pytest.fixture
def clean_global_container():
    container_module.reset_container()
    yield
    container_module.reset_container()


class TestCreateContainer:
    def test_memory_backend_by_default(self):
        container = create_container(_settings())

        assert isinstance(container, Container)
        assert isinstance(container.token_store, InMemoryTokenStore)
        assert isinstance(container.token_service, TokenLifecycleService)
        assert isinstance(container.token_metrics, PrometheusTokenMetrics)
        assert container.db_engine is None

    def test_sql_backend(self, tmp_path):
        container = create_container(
            _settings(
                TOKEN_STORE_BACKEND="sql",
                DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'tokens.db'}",
            )
        )

        assert isinstance(container.token_store, SqlTokenStore)
        assert container.db_engine is not None

    def test_registries_seeded_from_files(self, seed_files):
        clients, permissions = seed_files

        container = create_container(_settings(CLIENTS_FILE=clients, PERMISSIONS_FILE=permissions))

        assert container.client_registry.get_client("C1").allowed_permissions == {"read"}
        assert [p.permission for p in container.permission_catalog.default_permissions()] == [
            "read"
        ]

    def test_uses_given_metrics_registry(self):
        registry = CollectorRegistry()

        container = create_container(_settings(), metrics_registry=registry)

        assert container.token_metrics.registry is registry

    def test_replace_returns_new_container(self, test_container, fake_token_metrics):
        replaced = test_container.replace(token_metrics=PrometheusTokenMetrics())

        assert replaced.token_metrics is not fake_token_metrics
        assert test_container.token_metrics is fake_token_metrics


class TestGlobalContainer:
    def test_initialize_once(self, clean_global_container):
        built = initialize_container(_settings())

        assert container_module.container is built
        with pytest.raises(RuntimeError, match="already initialized"):
            initialize_container(_settings())
