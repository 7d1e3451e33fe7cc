"""Shared exceptions module.

Two families live here:

- ``OAuthServiceError`` and its subclasses: caller/protocol errors (bad or
  stale token, unknown or disabled client). They carry an ``OAuthErrorKind``
  and are surfaced unchanged to the endpoint layer, never retried.
- ``InfrastructureError`` and its subclasses: internal faults (storage
  unavailable, entropy failure, key collision). They abort the operation and
  are never mapped onto an ``OAuthErrorKind``.
"""

from enum import Enum
from typing import Optional


class TokengateException(Exception):
    """Base exception for Tokengate services."""

    pass


class OAuthErrorKind(str, Enum):
    """Closed set of caller-facing failure kinds."""

    CLIENT_NOT_FOUND = "client_not_found"
    CLIENT_DISABLED = "client_disabled"
    PERMISSION_NOT_ALLOWED = "permission_not_allowed"
    UNKNOWN_PERMISSION = "unknown_permission"
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_EXPIRED = "token_expired"
    INVALID_TOKEN_STATE = "invalid_token_state"
    VERIFIER_MISMATCH = "verifier_mismatch"


class OAuthServiceError(TokengateException):
    """Categorized service error raised by the token provider.

    Subclasses fix ``kind``; callers may catch a subclass or switch on
    ``error.kind``.
    """

    kind: OAuthErrorKind

    def __init__(self, message: Optional[str] = None):
        """Create a new OAuthServiceError instance.

        Args:
        ----
            message (str, optional): The error message. Defaults to the kind value.

        """
        self.message = message or self.kind.value.replace("_", " ")
        super().__init__(self.message)


class ClientNotFoundError(OAuthServiceError):
    """Raised when no client with the given identifier is registered."""

    kind = OAuthErrorKind.CLIENT_NOT_FOUND

    def __init__(self, client_id: str, message: Optional[str] = None):
        """Initialize with the unknown client identifier."""
        self.client_id = client_id
        super().__init__(message or f"Client '{client_id}' is not registered")


class ClientDisabledError(OAuthServiceError):
    """Raised when a client has been administratively deactivated."""

    kind = OAuthErrorKind.CLIENT_DISABLED

    def __init__(self, client_id: str, message: Optional[str] = None):
        """Initialize with the disabled client identifier."""
        self.client_id = client_id
        super().__init__(message or f"Client '{client_id}' is disabled")


class PermissionNotAllowedError(OAuthServiceError):
    """Raised when a client requests permissions it is not pre-authorized for."""

    kind = OAuthErrorKind.PERMISSION_NOT_ALLOWED

    def __init__(self, client_id: str, permissions: set[str], message: Optional[str] = None):
        """Initialize with the client and the disallowed permissions."""
        self.client_id = client_id
        self.permissions = frozenset(permissions)
        if message is None:
            message = (
                f"Client '{client_id}' is not allowed to request: "
                f"{', '.join(sorted(self.permissions))}"
            )
        super().__init__(message)


class UnknownPermissionError(OAuthServiceError):
    """Raised when a permission identifier is absent from the catalog."""

    kind = OAuthErrorKind.UNKNOWN_PERMISSION

    def __init__(self, permissions: set[str], message: Optional[str] = None):
        """Initialize with the unknown permission identifiers."""
        self.permissions = frozenset(permissions)
        super().__init__(
            message or f"Unknown permissions: {', '.join(sorted(self.permissions))}"
        )


class TokenNotFoundError(OAuthServiceError):
    """Raised when a token key does not resolve to a live token."""

    kind = OAuthErrorKind.TOKEN_NOT_FOUND


class TokenExpiredError(OAuthServiceError):
    """Raised when a token is past its expiration timestamp."""

    kind = OAuthErrorKind.TOKEN_EXPIRED


class InvalidTokenStateError(OAuthServiceError):
    """Raised when a lifecycle transition is not legal from the stored state."""

    kind = OAuthErrorKind.INVALID_TOKEN_STATE


class VerifierMismatchError(OAuthServiceError):
    """Raised when the supplied verifier does not match the stored one."""

    kind = OAuthErrorKind.VERIFIER_MISMATCH


class InfrastructureError(Exception):
    """Internal fault that aborts the operation.

    Not a TokengateException: handlers that translate OAuthServiceError
    into protocol responses never catch it.
    """

    def __init__(self, message: Optional[str] = "Internal infrastructure failure"):
        """Create a new InfrastructureError instance."""
        self.message = message
        super().__init__(self.message)


class TokenStoreUnavailableError(InfrastructureError):
    """Raised when the token store backend cannot be reached or fails."""

    def __init__(self, operation: str, message: Optional[str] = "Token store unavailable"):
        """Initialize with the store operation that failed."""
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class KeyGenerationError(InfrastructureError):
    """Raised when the system entropy source fails."""

    pass


class TokenKeyCollisionError(InfrastructureError):
    """Raised when a freshly generated key or secret already exists."""

    def __init__(self, message: Optional[str] = "Generated token key or secret already exists"):
        """Create a new TokenKeyCollisionError instance."""
        super().__init__(message)
