"""Permissions domain: catalog of opaque permission (scope) identifiers."""
