"""Dependency Injection Container Module.

This module provides the DI container and factory for wiring dependencies.

Usage:
------
    # Initialize at startup (call once)
    from tokengate.core.container import initialize_container
    from tokengate.core.config import settings
    initialize_container(settings)

    # Import the global container after initialization
    from tokengate.core import container as container_module
    service = container_module.container.token_service

    # In tests (construct directly with fakes, don't use global)
    from tokengate.core.container import Container
    test_container = Container(
        client_registry=FakeClientRegistry(),
        permission_catalog=FakePermissionCatalog(),
        ...
    )

Module structure:
-----------------
    container/
    ├── __init__.py      # This file - exports public API
    ├── container.py     # Container dataclass (serves)
    └── factory.py       # create_container() (builds)
"""

from typing import TYPE_CHECKING, Optional

from tokengate.core.container.container import Container
from tokengate.core.container.factory import create_container

if TYPE_CHECKING:
    from tokengate.core.config import Settings

__all__ = ["Container", "create_container", "container", "initialize_container"]


# ---------------------------------------------------------------------------
# Global container instance
# ---------------------------------------------------------------------------

container: Optional[Container] = None
"""Global container instance.

Initialized via `initialize_container()` at application startup.

Do NOT import this in domain code. Domains receive dependencies
via constructor parameters, never by importing the container directly.
"""


def initialize_container(settings: "Settings") -> Container:
    """Initialize the global container. Call once at startup.

    Args:
        settings: Application settings from core/config

    Returns:
        The newly built container.

    Raises:
        RuntimeError: If called more than once (container already initialized)
    """
    global container

    if container is not None:
        raise RuntimeError(
            "Container already initialized. "
            "initialize_container() should only be called once at startup."
        )

    container = create_container(settings)
    return container


def reset_container() -> None:
    """Reset the global container to None. For testing only."""
    global container
    container = None
