"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with the configured token store backend.

Design principles:
- Single place for all wiring decisions
- Fail fast: broken wiring crashes at startup, not at 3am
- Testable: can unit test factory logic with explicit settings
"""

from typing import Optional

from prometheus_client import CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncEngine

from tokengate.adapters.metrics import PrometheusTokenMetrics
from tokengate.core.config import Settings, TokenStoreBackend
from tokengate.core.container.container import Container
from tokengate.core.logging import logger
from tokengate.core.sweeper import ExpiredTokenSweeper
from tokengate.db.session import create_engine_from_settings, create_session_factory
from tokengate.domains.clients.registry import ClientRegistry, load_clients_file
from tokengate.domains.permissions.catalog import PermissionCatalog, load_permissions_file
from tokengate.domains.tokens.generator import SecretsTokenGenerator
from tokengate.domains.tokens.memory_store import InMemoryTokenStore
from tokengate.domains.tokens.protocols import TokenStoreProtocol
from tokengate.domains.tokens.service import TokenLifecycleService
from tokengate.domains.tokens.sql_store import SqlTokenStore

factory_logger = logger.with_prefix("ContainerFactory: ")


def create_container(
    settings: Settings,
    metrics_registry: Optional[CollectorRegistry] = None,
) -> Container:
    """Build container with the configured implementations.

    This is the single source of truth for dependency wiring.

    Args:
        settings: Application settings (from core/config)
        metrics_registry: Prometheus registry for token counters; a private
            registry is created when omitted.

    Returns:
        Fully constructed Container ready for use

    Raises:
        ValueError: If a seed file holds duplicate client or permission ids.
        pydantic.ValidationError: If a seed file record is malformed.
    """
    # -----------------------------------------------------------------
    # Registries (seeded from files when configured)
    # -----------------------------------------------------------------
    client_registry = ClientRegistry()
    client_registry.build(load_clients_file(settings.CLIENTS_FILE) if settings.CLIENTS_FILE else [])

    permission_catalog = PermissionCatalog()
    permission_catalog.build(
        load_permissions_file(settings.PERMISSIONS_FILE) if settings.PERMISSIONS_FILE else []
    )

    # -----------------------------------------------------------------
    # Token store
    # -----------------------------------------------------------------
    token_store, db_engine = _create_token_store(settings)

    # -----------------------------------------------------------------
    # Lifecycle service
    # -----------------------------------------------------------------
    token_generator = SecretsTokenGenerator(
        token_bytes=settings.TOKEN_BYTES,
        verifier_bytes=settings.VERIFIER_BYTES,
    )
    token_metrics = PrometheusTokenMetrics(registry=metrics_registry)

    token_service = TokenLifecycleService(
        store=token_store,
        client_registry=client_registry,
        permission_catalog=permission_catalog,
        generator=token_generator,
        metrics=token_metrics,
        request_token_ttl=settings.request_token_ttl,
        max_request_token_ttl=settings.max_request_token_ttl,
        access_token_ttl=settings.access_token_ttl,
    )

    sweeper = ExpiredTokenSweeper(token_service, interval=settings.SWEEP_INTERVAL_SECONDS)

    factory_logger.info(
        f"Container built with {settings.TOKEN_STORE_BACKEND.value} token store",
        extra={"environment": settings.ENVIRONMENT.value},
    )

    return Container(
        client_registry=client_registry,
        permission_catalog=permission_catalog,
        token_store=token_store,
        token_generator=token_generator,
        token_metrics=token_metrics,
        token_service=token_service,
        sweeper=sweeper,
        db_engine=db_engine,
    )


# ---------------------------------------------------------------------------
# Private factory functions
# ---------------------------------------------------------------------------


def _create_token_store(
    settings: Settings,
) -> tuple[TokenStoreProtocol, Optional[AsyncEngine]]:
    """Pick the token store backend.

    The SQL backend shares one engine for the process; tables are created by
    ``tokengate.db.session.init_models`` at startup.
    """
    if settings.TOKEN_STORE_BACKEND == TokenStoreBackend.SQL:
        engine = create_engine_from_settings(settings)
        return SqlTokenStore(create_session_factory(engine)), engine

    return InMemoryTokenStore(lock_stripes=settings.LOCK_STRIPES), None
