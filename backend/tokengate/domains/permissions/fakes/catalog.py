"""Fake permission catalog for testing."""

from typing import Iterable

from tokengate.core.exceptions import UnknownPermissionError
from tokengate.domains.permissions.types import OAuthPermission


class FakePermissionCatalog:
    """Test implementation of PermissionCatalogProtocol. Populate via seed()."""

    def __init__(self) -> None:
        self._entries: dict[str, OAuthPermission] = {}
        self.lookups: list[frozenset[str]] = []

    def get_permissions_info(self, permission_ids: Iterable[str]) -> list[OAuthPermission]:
        requested = frozenset(permission_ids)
        self.lookups.append(requested)
        unknown = requested - self._entries.keys()
        if unknown:
            raise UnknownPermissionError(set(unknown))
        return [self._entries[p] for p in sorted(requested)]

    def default_permissions(self) -> list[OAuthPermission]:
        return [p for _, p in sorted(self._entries.items()) if p.is_default]

    def list_all(self) -> list[OAuthPermission]:
        return [p for _, p in sorted(self._entries.items())]

    # Test helpers

    def seed(self, *permissions: OAuthPermission) -> None:
        """Populate the catalog."""
        for permission in permissions:
            self._entries[permission.permission] = permission

    def seed_names(self, *names: str, defaults: Iterable[str] = ()) -> None:
        """Populate the catalog with bare descriptors for the given identifiers."""
        default_set = set(defaults)
        self.seed(
            *[
                OAuthPermission(
                    permission=name,
                    description=f"{name} access",
                    is_default=name in default_set,
                )
                for name in names
            ]
        )
