"""Metrics protocols for dependency injection.

- TokenMetrics: token lifecycle instrumentation (issuance, failures, removals)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenMetrics(Protocol):
    """Protocol for token lifecycle metrics collection."""

    def inc_issued(self, token_type: str) -> None:
        """Count a newly issued token ("request" or "access")."""
        ...

    def inc_failure(self, operation: str, kind: str) -> None:
        """Count a caller-facing failure.

        Args:
            operation: Lifecycle operation name (e.g. "create_access_token").
            kind: OAuthErrorKind value.
        """
        ...

    def inc_removed(self, token_type: str, reason: str, count: int = 1) -> None:
        """Count removed tokens.

        Args:
            token_type: "request" or "access".
            reason: "revoked", "client_removed" or "expired".
            count: Number of tokens removed.
        """
        ...
