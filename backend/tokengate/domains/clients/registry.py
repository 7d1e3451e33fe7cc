"""Client registry: in-memory registry built once at startup."""

import json
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter

from tokengate.core.exceptions import ClientDisabledError, ClientNotFoundError
from tokengate.core.logging import logger
from tokengate.domains.clients.protocols import ClientRegistryProtocol
from tokengate.domains.clients.types import Client

registry_logger = logger.with_prefix("ClientRegistry: ").with_context(
    component="client_registry"
)

_CLIENT_LIST = TypeAdapter(list[Client])


class ClientRegistry(ClientRegistryProtocol):
    """In-memory client registry, built once at startup."""

    def __init__(self) -> None:
        """Initialize the client registry."""
        self._entries: dict[str, Client] = {}

    def get_client(self, client_id: str) -> Client:
        """Get a registered client by identifier.

        Args:
            client_id: The unique client identifier (consumer key).

        Returns:
            The registered client.

        Raises:
            ClientNotFoundError: If no client with that identifier is registered.
            ClientDisabledError: If the client has been administratively deactivated.
        """
        client = self._entries.get(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        if not client.enabled:
            raise ClientDisabledError(client_id)
        return client

    def list_all(self) -> list[Client]:
        """List all registered clients."""
        return list(self._entries.values())

    def build(self, clients: Iterable[Client]) -> None:
        """Build the registry from client records.

        Called once at startup. After this, all lookups are dict reads.

        Raises:
            ValueError: If two records share a client identifier.
        """
        for client in clients:
            if client.client_id in self._entries:
                raise ValueError(f"Duplicate client_id '{client.client_id}'")
            self._entries[client.client_id] = client

        disabled = sum(1 for c in self._entries.values() if not c.enabled)
        registry_logger.info(
            f"Built registry with {len(self._entries)} clients ({disabled} disabled)."
        )


def load_clients_file(path: Path) -> list[Client]:
    """Load client records from a JSON array file.

    Raises:
        pydantic.ValidationError: If a record is malformed.
        OSError: If the file cannot be read.
    """
    raw = json.loads(Path(path).read_text())
    return _CLIENT_LIST.validate_python(raw)
