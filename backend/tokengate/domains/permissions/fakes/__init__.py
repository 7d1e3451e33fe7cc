"""Fakes for the permissions domain."""

from tokengate.domains.permissions.fakes.catalog import FakePermissionCatalog

__all__ = ["FakePermissionCatalog"]
