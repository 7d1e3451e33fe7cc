"""Protocols for the clients domain."""

from typing import Protocol

from tokengate.domains.clients.types import Client


class ClientRegistryProtocol(Protocol):
    """Resolves client identifiers to registered Client metadata.

    Built once at startup. All lookups are synchronous dict reads.
    """

    def get_client(self, client_id: str) -> Client:
        """Get a registered, enabled client.

        Raises:
            ClientNotFoundError: If no client with that identifier is registered.
            ClientDisabledError: If the client has been deactivated.
        """
        ...

    def list_all(self) -> list[Client]:
        """List all registered clients, enabled or not."""
        ...
