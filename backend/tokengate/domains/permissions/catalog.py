"""Permission catalog: in-memory catalog built once at startup."""

import json
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter

from tokengate.core.exceptions import UnknownPermissionError
from tokengate.core.logging import logger
from tokengate.domains.permissions.protocols import PermissionCatalogProtocol
from tokengate.domains.permissions.types import OAuthPermission

catalog_logger = logger.with_prefix("PermissionCatalog: ").with_context(
    component="permission_catalog"
)

_PERMISSION_LIST = TypeAdapter(list[OAuthPermission])


class PermissionCatalog(PermissionCatalogProtocol):
    """In-memory permission catalog. Unknown identifiers are rejected, never dropped."""

    def __init__(self) -> None:
        """Initialize an empty catalog."""
        self._entries: dict[str, OAuthPermission] = {}

    def get_permissions_info(self, permission_ids: Iterable[str]) -> list[OAuthPermission]:
        """Resolve permission identifiers to descriptors.

        Args:
            permission_ids: Opaque identifiers, duplicates allowed.

        Returns:
            One descriptor per distinct identifier, sorted by identifier.

        Raises:
            UnknownPermissionError: If any identifier is not in the catalog.
        """
        requested = set(permission_ids)
        unknown = requested - self._entries.keys()
        if unknown:
            raise UnknownPermissionError(unknown)
        return [self._entries[p] for p in sorted(requested)]

    def default_permissions(self) -> list[OAuthPermission]:
        """Return descriptors granted when nothing is requested."""
        return [p for _, p in sorted(self._entries.items()) if p.is_default]

    def list_all(self) -> list[OAuthPermission]:
        """List the whole catalog sorted by identifier."""
        return [p for _, p in sorted(self._entries.items())]

    def build(self, permissions: Iterable[OAuthPermission]) -> None:
        """Build the catalog. Called once at startup.

        Raises:
            ValueError: If two entries share an identifier.
        """
        for permission in permissions:
            if permission.permission in self._entries:
                raise ValueError(f"Duplicate permission '{permission.permission}'")
            self._entries[permission.permission] = permission

        catalog_logger.info(f"Built catalog with {len(self._entries)} permissions.")


def load_permissions_file(path: Path) -> list[OAuthPermission]:
    """Load permission descriptors from a JSON array file."""
    raw = json.loads(Path(path).read_text())
    return _PERMISSION_LIST.validate_python(raw)
