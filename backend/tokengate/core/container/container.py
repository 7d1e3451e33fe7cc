"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
It has no construction logic; that belongs in the factory.

Design principles:
- Container serves, factory builds
- Fail fast: all construction at startup
- Testing: construct directly with fakes
"""

from dataclasses import dataclass, replace
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from tokengate.core.protocols import TokenMetrics
from tokengate.core.sweeper import ExpiredTokenSweeper
from tokengate.domains.clients.protocols import ClientRegistryProtocol
from tokengate.domains.permissions.protocols import PermissionCatalogProtocol
from tokengate.domains.tokens.protocols import (
    TokenGeneratorProtocol,
    TokenLifecycleServiceProtocol,
    TokenStoreProtocol,
)


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: use the global container built by factory
        from tokengate.core.container import container
        token = await container.token_service.create_request_token(registration)

        # Testing: construct directly with fakes
        test_container = Container(client_registry=FakeClientRegistry(), ...)
    """

    # Leaf registries, read-mostly
    client_registry: ClientRegistryProtocol
    permission_catalog: PermissionCatalogProtocol

    # Token persistence and material
    token_store: TokenStoreProtocol
    token_generator: TokenGeneratorProtocol

    # Lifecycle counters
    token_metrics: TokenMetrics

    # The provider contract used by the OAuth endpoint layer
    token_service: TokenLifecycleServiceProtocol

    # Expired token garbage collection
    sweeper: ExpiredTokenSweeper

    # Only set for the SQL backend
    db_engine: Optional[AsyncEngine] = None

    # -----------------------------------------------------------------
    # Convenience methods
    # -----------------------------------------------------------------

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Useful for partial overrides in tests:
            modified = container.replace(token_metrics=FakeTokenMetrics())

        Args:
            **changes: Dependency name -> new implementation

        Returns:
            New Container with specified dependencies replaced
        """
        return replace(self, **changes)
