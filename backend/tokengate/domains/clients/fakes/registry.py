"""Fake client registry for testing."""

from tokengate.core.exceptions import ClientDisabledError, ClientNotFoundError
from tokengate.domains.clients.types import Client


class FakeClientRegistry:
    """Test implementation of ClientRegistryProtocol.

    Stores clients in a dict. Populate via seed().

    Usage:
        fake = FakeClientRegistry()
        fake.seed(client_a, client_b)

        assert fake.get_client("c1") == client_a
    """

    def __init__(self) -> None:
        """Initialize with empty entries."""
        self._entries: dict[str, Client] = {}
        self.lookups: list[str] = []

    def get_client(self, client_id: str) -> Client:
        """Get client by id, enforcing the enabled flag."""
        self.lookups.append(client_id)
        client = self._entries.get(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        if not client.enabled:
            raise ClientDisabledError(client_id)
        return client

    def list_all(self) -> list[Client]:
        """List all entries."""
        return list(self._entries.values())

    # Test helpers

    def seed(self, *clients: Client) -> None:
        """Populate the registry with pre-built clients."""
        for client in clients:
            self._entries[client.client_id] = client

    def disable(self, client_id: str) -> None:
        """Replace a seeded client with a disabled copy."""
        self._entries[client_id] = self._entries[client_id].model_copy(update={"enabled": False})

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()
