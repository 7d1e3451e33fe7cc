"""Core protocols shared across domains."""

from tokengate.core.protocols.metrics import TokenMetrics

__all__ = ["TokenMetrics"]
