"""Protocols for the tokens domain.

The Token Store contract is expressed as atomic primitives. Every method
must be linearizable on the token(s) it touches; the lifecycle service
builds the state machine on top of these and never holds a lock itself.
"""

from datetime import datetime
from typing import Optional, Protocol

from tokengate.domains.clients.types import Client
from tokengate.domains.permissions.types import OAuthPermission
from tokengate.domains.tokens.types import (
    AccessToken,
    RemovalResult,
    RequestToken,
    RequestTokenRegistration,
    ResourceOwner,
)


class TokenGeneratorProtocol(Protocol):
    """Source of unguessable token material.

    Raises:
        KeyGenerationError: If the entropy source fails.
    """

    def new_key(self) -> str:
        """Generate a token key."""
        ...

    def new_secret(self) -> str:
        """Generate a token secret."""
        ...

    def new_verifier(self) -> str:
        """Generate a verifier."""
        ...


class TokenStoreProtocol(Protocol):
    """Persistence contract for request and access tokens.

    Implementations raise TokenStoreUnavailableError for backend faults and
    TokenKeyCollisionError when an inserted key or secret already exists in
    either token family. They never raise OAuthServiceError: a failed
    precondition is reported through the return value so the caller can
    classify it.
    """

    async def insert_request_token(self, token: RequestToken) -> None:
        """Persist a new PENDING request token."""
        ...

    async def get_request_token(self, key: str) -> Optional[RequestToken]:
        """Return the stored request token, expired or not, or None."""
        ...

    async def authorize_request_token(
        self,
        key: str,
        *,
        verifier: str,
        resource_owner: ResourceOwner,
        now: datetime,
    ) -> Optional[RequestToken]:
        """Compare-and-swap PENDING -> AUTHORIZED.

        Succeeds only if the token exists, is PENDING and is unexpired at
        ``now``. Returns the updated token, or None if the precondition failed.
        """
        ...

    async def consume_request_token(
        self,
        key: str,
        *,
        verifier: str,
        access_token: AccessToken,
        now: datetime,
    ) -> bool:
        """Compare-and-swap AUTHORIZED -> CONSUMED and insert ``access_token``.

        Succeeds only if the token exists, is AUTHORIZED, stores exactly
        ``verifier`` and is unexpired at ``now``. Both writes happen as one
        atomic unit: at most one caller can ever get True for a given key.
        """
        ...

    async def revoke_request_token(self, key: str) -> Optional[RequestToken]:
        """Compare-and-delete a request token that is PENDING or AUTHORIZED.

        Returns the deleted record, or None if the token is missing or was
        already exchanged.
        """
        ...

    async def delete_request_token(self, key: str) -> Optional[RequestToken]:
        """Delete a request token, returning the deleted record or None."""
        ...

    async def get_access_token(self, key: str) -> Optional[AccessToken]:
        """Return the stored access token, expired or not, or None."""
        ...

    async def list_access_tokens(self, client_id: str) -> list[AccessToken]:
        """Return every stored access token of a client."""
        ...

    async def delete_access_token(self, key: str) -> Optional[AccessToken]:
        """Delete an access token, returning the deleted record or None."""
        ...

    async def remove_client_tokens(self, client_id: str) -> RemovalResult:
        """Atomically delete every token of both families owned by a client."""
        ...

    async def purge_expired(self, now: datetime) -> RemovalResult:
        """Delete every token whose expiration is at or before ``now``."""
        ...


class TokenLifecycleServiceProtocol(Protocol):
    """The provider contract invoked by the OAuth endpoint layer."""

    def get_client(self, client_id: str) -> Client:
        """Resolve a registered, enabled client."""
        ...

    def get_permissions_info(self, permission_ids: set[str]) -> list[OAuthPermission]:
        """Resolve permission identifiers to descriptors."""
        ...

    async def create_request_token(self, registration: RequestTokenRegistration) -> RequestToken:
        """Create a PENDING request token for a registration."""
        ...

    async def get_request_token(self, key: str) -> RequestToken:
        """Look up a live request token."""
        ...

    async def set_request_token_verifier(
        self,
        request_token: RequestToken,
        resource_owner: Optional[ResourceOwner] = None,
    ) -> str:
        """Transition PENDING -> AUTHORIZED and return the new verifier."""
        ...

    async def create_access_token(self, request_token: RequestToken) -> AccessToken:
        """Exchange an AUTHORIZED request token for an access token, exactly once."""
        ...

    async def get_access_token(self, key: str) -> AccessToken:
        """Look up a live access token."""
        ...

    async def get_access_tokens(self, client_id: str) -> list[AccessToken]:
        """List a client's live access tokens."""
        ...

    async def revoke_request_token(self, key: str) -> RequestToken:
        """Revoke a request token (resource owner denial)."""
        ...

    async def revoke_access_token(self, key: str) -> AccessToken:
        """Revoke a single access token."""
        ...

    async def remove_tokens(self, client_id: str) -> RemovalResult:
        """Delete every token owned by a client."""
        ...

    async def purge_expired(self) -> RemovalResult:
        """Garbage-collect expired tokens."""
        ...
