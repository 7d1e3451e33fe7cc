"""Value types for the tokens domain.

Token state is a closed set per family. Stored records only ever hold the
persistent states (PENDING, AUTHORIZED, CONSUMED for request tokens; ACTIVE
for access tokens). EXPIRED is derived from ``expires_at`` at read time and
REVOKED is reported on the value returned by a revocation, after which the
record no longer exists.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenType(str, Enum):
    """Token family."""

    REQUEST = "request"
    ACCESS = "access"


class RequestTokenState(str, Enum):
    """Request token lifecycle: PENDING -> AUTHORIZED -> CONSUMED."""

    PENDING = "pending"
    AUTHORIZED = "authorized"
    CONSUMED = "consumed"
    EXPIRED = "expired"
    REVOKED = "revoked"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_REQUEST_STATES


_TERMINAL_REQUEST_STATES = frozenset(
    {RequestTokenState.CONSUMED, RequestTokenState.EXPIRED, RequestTokenState.REVOKED}
)


class AccessTokenState(str, Enum):
    """Access token lifecycle: ACTIVE -> EXPIRED | REVOKED."""

    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class ResourceOwner(BaseModel):
    """End user who approved a request token."""

    model_config = ConfigDict(frozen=True)

    login: str = Field(..., min_length=1)
    roles: tuple[str, ...] = ()


@dataclass(slots=True)
class RequestTokenRegistration:
    """Input for request token creation. Consumed synchronously, never persisted."""

    client_id: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    callback: Optional[str] = None
    state: Optional[str] = None
    lifetime: Optional[timedelta] = None
    uris: tuple[str, ...] = ()
    http_verbs: tuple[str, ...] = ()


class _Token(BaseModel):
    """Fields shared by both token families."""

    model_config = ConfigDict(frozen=True)

    key: str
    secret: str = Field(..., repr=False)
    client_id: str
    permissions: frozenset[str] = Field(default_factory=frozenset)
    uris: tuple[str, ...] = ()
    http_verbs: tuple[str, ...] = ()
    issued_at: datetime
    expires_at: Optional[datetime] = None
    resource_owner: Optional[ResourceOwner] = None

    def is_expired(self, now: datetime) -> bool:
        """Whether the token is past its expiration timestamp at ``now``."""
        return self.expires_at is not None and now >= self.expires_at


class RequestToken(_Token):
    """Short-lived credential representing a pending authorization.

    ``verifier`` holds the stored verifier on records read from the store.
    When a client presents a verifier for exchange, the caller passes a copy
    carrying the presented value (``token.with_verifier(v)``).
    """

    status: RequestTokenState = RequestTokenState.PENDING
    expires_at: datetime
    callback: Optional[str] = None
    state: Optional[str] = None
    verifier: Optional[str] = Field(None, repr=False)

    def effective_status(self, now: datetime) -> RequestTokenState:
        """Stored status, or EXPIRED once past expiration."""
        if self.status.is_terminal:
            return self.status
        if self.is_expired(now):
            return RequestTokenState.EXPIRED
        return self.status

    def with_verifier(self, verifier: str) -> "RequestToken":
        """Return a copy carrying a client-presented verifier."""
        return self.model_copy(update={"verifier": verifier})


class AccessToken(_Token):
    """Long-lived credential granting delegated access.

    ``expires_at`` is None for non-expiring tokens.
    """

    status: AccessTokenState = AccessTokenState.ACTIVE
    request_token_key: str

    def effective_status(self, now: datetime) -> AccessTokenState:
        """Stored status, or EXPIRED once past expiration."""
        if self.status is AccessTokenState.ACTIVE and self.is_expired(now):
            return AccessTokenState.EXPIRED
        return self.status


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """Counts of tokens deleted by a bulk removal or purge."""

    request_tokens: int = 0
    access_tokens: int = 0

    @property
    def total(self) -> int:
        return self.request_tokens + self.access_tokens
