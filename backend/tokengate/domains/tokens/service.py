"""Token lifecycle service: the request/access token state machine.

Request token:  PENDING -> AUTHORIZED -> CONSUMED   (EXPIRED/REVOKED from any
non-terminal state). Access token: ACTIVE -> EXPIRED | REVOKED.

Every transition first reads the stored record to classify failures
precisely, then commits through a store compare-and-swap. If the CAS loses
a race the record is re-read and the failure classified again, so a losing
concurrent caller observes the same error it would have seen had it run
second.
"""

import functools
import hmac
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from tokengate.core.datetime_utils import utc_now
from tokengate.core.exceptions import (
    InvalidTokenStateError,
    OAuthServiceError,
    PermissionNotAllowedError,
    TokenExpiredError,
    TokenNotFoundError,
    VerifierMismatchError,
)
from tokengate.core.logging import logger, truncate_key
from tokengate.core.protocols.metrics import TokenMetrics
from tokengate.domains.clients.protocols import ClientRegistryProtocol
from tokengate.domains.clients.types import Client
from tokengate.domains.permissions.protocols import PermissionCatalogProtocol
from tokengate.domains.permissions.types import OAuthPermission
from tokengate.domains.tokens.protocols import (
    TokenGeneratorProtocol,
    TokenLifecycleServiceProtocol,
    TokenStoreProtocol,
)
from tokengate.domains.tokens.types import (
    AccessToken,
    AccessTokenState,
    RemovalResult,
    RequestToken,
    RequestTokenRegistration,
    RequestTokenState,
    ResourceOwner,
    TokenType,
)

service_logger = logger.with_prefix("TokenLifecycle: ").with_context(component="token_lifecycle")

T = TypeVar("T")


def _tracked(operation: str):
    """Decorator: count and log OAuthServiceError before re-raising it unchanged."""

    def decorator(
        method: Callable[..., Awaitable[T]],
    ) -> Callable[..., Awaitable[T]]:
        @functools.wraps(method)
        async def wrapper(self: "TokenLifecycleService", *args, **kwargs) -> T:
            try:
                return await method(self, *args, **kwargs)
            except OAuthServiceError as e:
                self._record_failure(operation, e)
                raise

        return wrapper

    return decorator


def _verifiers_match(presented: Optional[str], stored: Optional[str]) -> bool:
    if presented is None or stored is None:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))


class TokenLifecycleService(TokenLifecycleServiceProtocol):
    """Creates, transitions and retires request and access tokens.

    Args:
        store: Token persistence with atomic transition primitives.
        client_registry: Resolves and validates clients.
        permission_catalog: Validates permission identifiers.
        generator: Source of keys, secrets and verifiers.
        metrics: Lifecycle counters.
        request_token_ttl: Default request token lifetime.
        max_request_token_ttl: Cap for per-registration lifetime overrides.
        access_token_ttl: Access token lifetime; None issues non-expiring tokens.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        *,
        store: TokenStoreProtocol,
        client_registry: ClientRegistryProtocol,
        permission_catalog: PermissionCatalogProtocol,
        generator: TokenGeneratorProtocol,
        metrics: TokenMetrics,
        request_token_ttl: timedelta = timedelta(minutes=10),
        max_request_token_ttl: timedelta = timedelta(hours=1),
        access_token_ttl: Optional[timedelta] = timedelta(days=30),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clients = client_registry
        self._catalog = permission_catalog
        self._generator = generator
        self._metrics = metrics
        self._request_token_ttl = request_token_ttl
        self._max_request_token_ttl = max_request_token_ttl
        self._access_token_ttl = access_token_ttl
        self._clock = clock

    # ------------------------------------------------------------------
    # Registries
    # ------------------------------------------------------------------

    def get_client(self, client_id: str) -> Client:
        """Resolve a registered, enabled client.

        Raises:
            ClientNotFoundError, ClientDisabledError
        """
        try:
            return self._clients.get_client(client_id)
        except OAuthServiceError as e:
            self._record_failure("get_client", e)
            raise

    def get_permissions_info(self, permission_ids: Iterable[str]) -> list[OAuthPermission]:
        """Resolve permission identifiers to descriptors.

        Raises:
            UnknownPermissionError: If any identifier is absent from the catalog.
        """
        try:
            return self._catalog.get_permissions_info(permission_ids)
        except OAuthServiceError as e:
            self._record_failure("get_permissions_info", e)
            raise

    # ------------------------------------------------------------------
    # Request tokens
    # ------------------------------------------------------------------

    @_tracked("create_request_token")
    async def create_request_token(self, registration: RequestTokenRegistration) -> RequestToken:
        """Create a PENDING request token.

        The returned token carries its secret; this is the only time the
        secret is handed out.

        Raises:
            ClientNotFoundError, ClientDisabledError: From the client registry.
            PermissionNotAllowedError: A requested permission is not pre-authorized.
            UnknownPermissionError: A requested permission is not in the catalog.
            ValueError: The registration's lifetime override is not positive.
        """
        client = self._clients.get_client(registration.client_id)
        permissions = self._resolve_permissions(client, registration.permissions)
        lifetime = self._request_token_lifetime(registration.lifetime)

        now = self._clock()
        token = RequestToken(
            key=self._generator.new_key(),
            secret=self._generator.new_secret(),
            client_id=client.client_id,
            permissions=permissions,
            uris=registration.uris,
            http_verbs=registration.http_verbs,
            issued_at=now,
            expires_at=now + lifetime,
            callback=registration.callback or client.callback_uri,
            state=registration.state,
        )
        await self._store.insert_request_token(token)

        self._metrics.inc_issued(TokenType.REQUEST.value)
        service_logger.info(
            f"Issued request token {truncate_key(token.key)}",
            extra={"client_id": client.client_id, "permissions": ",".join(sorted(permissions))},
        )
        return token

    @_tracked("get_request_token")
    async def get_request_token(self, key: str) -> RequestToken:
        """Look up a request token by key.

        Raises:
            TokenNotFoundError: No such token.
            TokenExpiredError: The token expired; it is deleted on this read.
        """
        return await self._require_request_token(key)

    @_tracked("set_request_token_verifier")
    async def set_request_token_verifier(
        self,
        request_token: RequestToken,
        resource_owner: Optional[ResourceOwner] = None,
    ) -> str:
        """Record the resource owner's approval: PENDING -> AUTHORIZED.

        The passed token may be stale; only its key is trusted. The approving
        resource owner is taken from ``resource_owner`` or, failing that,
        from ``request_token.resource_owner``.

        Returns:
            The freshly generated verifier, for delivery to the client.

        Raises:
            TokenNotFoundError, TokenExpiredError
            InvalidTokenStateError: The stored token is not PENDING.
            ValueError: No resource owner was supplied.
        """
        stored = await self._require_request_token(request_token.key)
        if stored.status is not RequestTokenState.PENDING:
            raise InvalidTokenStateError(
                f"Request token is {stored.status.value}, expected pending"
            )

        owner = resource_owner or request_token.resource_owner
        if owner is None:
            raise ValueError("A resource owner is required to authorize a request token")

        verifier = self._generator.new_verifier()
        updated = await self._store.authorize_request_token(
            stored.key, verifier=verifier, resource_owner=owner, now=self._clock()
        )
        if updated is None:
            await self._raise_lost_transition(stored.key)

        service_logger.info(
            f"Authorized request token {truncate_key(stored.key)}",
            extra={"client_id": stored.client_id, "resource_owner": owner.login},
        )
        return verifier

    @_tracked("revoke_request_token")
    async def revoke_request_token(self, key: str) -> RequestToken:
        """Revoke a non-terminal request token (e.g. the resource owner denied it).

        Raises:
            TokenNotFoundError, TokenExpiredError
            InvalidTokenStateError: The token was already exchanged.
        """
        stored = await self._require_request_token(key)
        if stored.status is RequestTokenState.CONSUMED:
            raise InvalidTokenStateError("Request token was already exchanged")

        removed = await self._store.revoke_request_token(key)
        if removed is None:
            await self._raise_lost_transition(key)

        self._metrics.inc_removed(TokenType.REQUEST.value, "revoked")
        service_logger.info(
            f"Revoked request token {truncate_key(key)}", extra={"client_id": removed.client_id}
        )
        return removed.model_copy(update={"status": RequestTokenState.REVOKED})

    # ------------------------------------------------------------------
    # Access tokens
    # ------------------------------------------------------------------

    @_tracked("create_access_token")
    async def create_access_token(self, request_token: RequestToken) -> AccessToken:
        """Exchange an AUTHORIZED request token for an access token, exactly once.

        ``request_token.verifier`` must carry the verifier the client presented.
        Of any number of concurrent calls for one request token, exactly one
        succeeds; the others raise InvalidTokenStateError.

        Raises:
            TokenNotFoundError, TokenExpiredError
            InvalidTokenStateError: The token is not AUTHORIZED (pending or consumed).
            VerifierMismatchError: Wrong verifier; the token stays exchangeable.
        """
        stored = await self._require_request_token(request_token.key)
        if stored.status is RequestTokenState.PENDING:
            raise InvalidTokenStateError("Request token has not been authorized")
        if stored.status is not RequestTokenState.AUTHORIZED:
            raise InvalidTokenStateError(
                f"Request token is {stored.status.value}, expected authorized"
            )
        if not _verifiers_match(request_token.verifier, stored.verifier):
            raise VerifierMismatchError("Verifier does not match the authorized request token")

        now = self._clock()
        access_token = AccessToken(
            key=self._generator.new_key(),
            secret=self._generator.new_secret(),
            client_id=stored.client_id,
            permissions=stored.permissions,
            uris=stored.uris,
            http_verbs=stored.http_verbs,
            issued_at=now,
            expires_at=now + self._access_token_ttl if self._access_token_ttl else None,
            resource_owner=stored.resource_owner,
            request_token_key=stored.key,
        )
        exchanged = await self._store.consume_request_token(
            stored.key, verifier=stored.verifier, access_token=access_token, now=now
        )
        if not exchanged:
            await self._raise_lost_transition(stored.key)

        self._metrics.inc_issued(TokenType.ACCESS.value)
        service_logger.info(
            f"Exchanged request token {truncate_key(stored.key)} "
            f"for access token {truncate_key(access_token.key)}",
            extra={"client_id": stored.client_id},
        )
        return access_token

    @_tracked("get_access_token")
    async def get_access_token(self, key: str) -> AccessToken:
        """Look up an access token by key.

        Raises:
            TokenNotFoundError: No such token.
            TokenExpiredError: The token expired; it is deleted on this read.
        """
        token = await self._store.get_access_token(key)
        if token is None:
            raise TokenNotFoundError(f"Access token {truncate_key(key)} not found")
        if token.effective_status(self._clock()) is AccessTokenState.EXPIRED:
            await self._discard_expired_access_token(key)
            raise TokenExpiredError(f"Access token {truncate_key(key)} has expired")
        return token

    async def get_access_tokens(self, client_id: str) -> list[AccessToken]:
        """List the live access tokens of a client."""
        now = self._clock()
        tokens = await self._store.list_access_tokens(client_id)
        return [t for t in tokens if not t.is_expired(now)]

    @_tracked("revoke_access_token")
    async def revoke_access_token(self, key: str) -> AccessToken:
        """Revoke a single access token.

        Raises:
            TokenNotFoundError: No such token.
            TokenExpiredError: The token had already expired; it is deleted anyway.
        """
        removed = await self._store.delete_access_token(key)
        if removed is None:
            raise TokenNotFoundError(f"Access token {truncate_key(key)} not found")
        if removed.is_expired(self._clock()):
            self._metrics.inc_removed(TokenType.ACCESS.value, "expired")
            raise TokenExpiredError(f"Access token {truncate_key(key)} has expired")

        self._metrics.inc_removed(TokenType.ACCESS.value, "revoked")
        service_logger.info(
            f"Revoked access token {truncate_key(key)}", extra={"client_id": removed.client_id}
        )
        return removed.model_copy(update={"status": AccessTokenState.REVOKED})

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def remove_tokens(self, client_id: str) -> RemovalResult:
        """Delete every request and access token owned by a client, atomically."""
        result = await self._store.remove_client_tokens(client_id)

        self._metrics.inc_removed(TokenType.REQUEST.value, "client_removed", result.request_tokens)
        self._metrics.inc_removed(TokenType.ACCESS.value, "client_removed", result.access_tokens)
        service_logger.info(
            f"Removed {result.request_tokens} request and {result.access_tokens} access tokens",
            extra={"client_id": client_id},
        )
        return result

    async def purge_expired(self) -> RemovalResult:
        """Garbage-collect tokens of both families whose expiration has passed."""
        result = await self._store.purge_expired(self._clock())

        self._metrics.inc_removed(TokenType.REQUEST.value, "expired", result.request_tokens)
        self._metrics.inc_removed(TokenType.ACCESS.value, "expired", result.access_tokens)
        if result.total:
            service_logger.info(f"Purged {result.total} expired tokens")
        return result

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _record_failure(self, operation: str, error: OAuthServiceError) -> None:
        self._metrics.inc_failure(operation, error.kind.value)
        service_logger.info(
            f"{operation} failed: {error.message}",
            extra={"operation": operation, "kind": error.kind.value},
        )

    def _resolve_permissions(self, client: Client, requested: Iterable[str]) -> frozenset[str]:
        """Validate requested permissions against the client and the catalog.

        An empty request grants the client's pre-authorized default permissions.
        """
        requested = frozenset(requested)
        if not requested:
            defaults = {p.permission for p in self._catalog.default_permissions()}
            return frozenset(defaults & client.allowed_permissions)

        not_allowed = requested - client.allowed_permissions
        if not_allowed:
            raise PermissionNotAllowedError(client.client_id, set(not_allowed))

        # Raises UnknownPermissionError for pre-authorized ids the catalog lacks
        self._catalog.get_permissions_info(requested)
        return requested

    def _request_token_lifetime(self, override: Optional[timedelta]) -> timedelta:
        if override is None:
            return self._request_token_ttl
        if override <= timedelta(0):
            raise ValueError("Request token lifetime must be positive")
        return min(override, self._max_request_token_ttl)

    async def _require_request_token(self, key: str) -> RequestToken:
        token = await self._store.get_request_token(key)
        if token is None:
            raise TokenNotFoundError(f"Request token {truncate_key(key)} not found")
        if token.is_expired(self._clock()):
            await self._discard_expired_request_token(key)
            raise TokenExpiredError(f"Request token {truncate_key(key)} has expired")
        return token

    async def _discard_expired_request_token(self, key: str) -> None:
        if await self._store.delete_request_token(key) is not None:
            self._metrics.inc_removed(TokenType.REQUEST.value, "expired")

    async def _discard_expired_access_token(self, key: str) -> None:
        if await self._store.delete_access_token(key) is not None:
            self._metrics.inc_removed(TokenType.ACCESS.value, "expired")

    async def _raise_lost_transition(self, key: str) -> None:
        """Classify a failed compare-and-swap by re-reading the record."""
        current = await self._store.get_request_token(key)
        if current is None:
            raise TokenNotFoundError(f"Request token {truncate_key(key)} not found")
        if current.is_expired(self._clock()):
            raise TokenExpiredError(f"Request token {truncate_key(key)} has expired")
        raise InvalidTokenStateError(
            f"Request token is {current.status.value}; a concurrent transition won"
        )
