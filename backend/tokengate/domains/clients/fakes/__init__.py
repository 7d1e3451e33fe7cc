"""Fakes for the clients domain."""

from tokengate.domains.clients.fakes.registry import FakeClientRegistry

__all__ = ["FakeClientRegistry"]
