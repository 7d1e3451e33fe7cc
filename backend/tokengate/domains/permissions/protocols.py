"""Protocols for the permissions domain."""

from typing import Iterable, Protocol

from tokengate.domains.permissions.types import OAuthPermission


class PermissionCatalogProtocol(Protocol):
    """Maps opaque permission identifiers to descriptors."""

    def get_permissions_info(self, permission_ids: Iterable[str]) -> list[OAuthPermission]:
        """Resolve identifiers to descriptors, sorted by identifier.

        Raises:
            UnknownPermissionError: If any identifier is absent from the catalog.
        """
        ...

    def default_permissions(self) -> list[OAuthPermission]:
        """Return the descriptors flagged ``is_default``."""
        ...

    def list_all(self) -> list[OAuthPermission]:
        """List the whole catalog."""
        ...
