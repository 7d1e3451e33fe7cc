"""In-memory token store.

Records are immutable pydantic models held in dicts; every mutation swaps
a whole record. Atomicity comes from two sets of striped locks:

- key stripes, held by any operation that changes a single token
- client stripes, held by operations that change a client's key index
  (insert, consume, delete, bulk removal)

Locks are always taken client stripes first, then key stripes, each set in
ascending stripe order. Locks are ``threading.Lock``s and no ``await``
happens while one is held, so the store is safe across threads and event
loops alike.
"""

from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from typing import Iterator, Optional

from tokengate.core.exceptions import TokenKeyCollisionError
from tokengate.core.logging import logger
from tokengate.domains.tokens.protocols import TokenStoreProtocol
from tokengate.domains.tokens.types import (
    AccessToken,
    RemovalResult,
    RequestToken,
    RequestTokenState,
    ResourceOwner,
)

store_logger = logger.with_prefix("InMemoryTokenStore: ").with_context(component="token_store")

_REVOCABLE = frozenset({RequestTokenState.PENDING, RequestTokenState.AUTHORIZED})


class StripedLocks:
    """Fixed pool of locks addressed by name hash."""

    def __init__(self, stripes: int) -> None:
        self._locks = [Lock() for _ in range(stripes)]

    def _index(self, name: str) -> int:
        return hash(name) % len(self._locks)

    @contextmanager
    def hold(self, *names: str) -> Iterator[None]:
        """Acquire the stripes covering ``names`` in ascending order."""
        indexes = sorted({self._index(n) for n in names})
        acquired: list[int] = []
        try:
            for i in indexes:
                self._locks[i].acquire()
                acquired.append(i)
            yield
        finally:
            for i in reversed(acquired):
                self._locks[i].release()


class InMemoryTokenStore(TokenStoreProtocol):
    """Token store backed by process memory.

    Args:
        lock_stripes: Number of lock stripes per lock set.
    """

    def __init__(self, lock_stripes: int = 64) -> None:
        self._request_tokens: dict[str, RequestToken] = {}
        self._access_tokens: dict[str, AccessToken] = {}
        self._secrets: set[str] = set()
        self._client_keys: dict[str, set[str]] = {}
        self._client_locks = StripedLocks(lock_stripes)
        self._key_locks = StripedLocks(lock_stripes)

    # ------------------------------------------------------------------
    # Private helpers (callers hold the relevant locks)
    # ------------------------------------------------------------------

    def _check_unique(self, key: str, secret: str) -> None:
        if key in self._request_tokens or key in self._access_tokens or secret in self._secrets:
            raise TokenKeyCollisionError()

    def _index(self, client_id: str, key: str) -> None:
        self._client_keys.setdefault(client_id, set()).add(key)

    def _unindex(self, client_id: str, key: str) -> None:
        keys = self._client_keys.get(client_id)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._client_keys[client_id]

    # ------------------------------------------------------------------
    # Request tokens
    # ------------------------------------------------------------------

    async def insert_request_token(self, token: RequestToken) -> None:
        with self._client_locks.hold(token.client_id), self._key_locks.hold(
            token.key, token.secret
        ):
            self._check_unique(token.key, token.secret)
            self._request_tokens[token.key] = token
            self._secrets.add(token.secret)
            self._index(token.client_id, token.key)

    async def get_request_token(self, key: str) -> Optional[RequestToken]:
        return self._request_tokens.get(key)

    async def authorize_request_token(
        self,
        key: str,
        *,
        verifier: str,
        resource_owner: ResourceOwner,
        now: datetime,
    ) -> Optional[RequestToken]:
        with self._key_locks.hold(key):
            current = self._request_tokens.get(key)
            if (
                current is None
                or current.status is not RequestTokenState.PENDING
                or current.is_expired(now)
            ):
                return None
            updated = current.model_copy(
                update={
                    "status": RequestTokenState.AUTHORIZED,
                    "verifier": verifier,
                    "resource_owner": resource_owner,
                }
            )
            self._request_tokens[key] = updated
            return updated

    async def consume_request_token(
        self,
        key: str,
        *,
        verifier: str,
        access_token: AccessToken,
        now: datetime,
    ) -> bool:
        snapshot = self._request_tokens.get(key)
        if snapshot is None:
            return False

        # client_id is immutable, so the unlocked snapshot names the right stripe
        with self._client_locks.hold(snapshot.client_id), self._key_locks.hold(
            key, access_token.key, access_token.secret
        ):
            current = self._request_tokens.get(key)
            if (
                current is None
                or current.status is not RequestTokenState.AUTHORIZED
                or current.verifier != verifier
                or current.is_expired(now)
            ):
                return False
            self._check_unique(access_token.key, access_token.secret)

            self._request_tokens[key] = current.model_copy(
                update={"status": RequestTokenState.CONSUMED}
            )
            self._access_tokens[access_token.key] = access_token
            self._secrets.add(access_token.secret)
            self._index(access_token.client_id, access_token.key)
            return True

    async def revoke_request_token(self, key: str) -> Optional[RequestToken]:
        return self._pop_request_token(key, _REVOCABLE)

    async def delete_request_token(self, key: str) -> Optional[RequestToken]:
        return self._pop_request_token(key)

    def _pop_request_token(
        self, key: str, statuses: Optional[frozenset[RequestTokenState]] = None
    ) -> Optional[RequestToken]:
        snapshot = self._request_tokens.get(key)
        if snapshot is None:
            return None
        with self._client_locks.hold(snapshot.client_id), self._key_locks.hold(key):
            current = self._request_tokens.get(key)
            if current is None or (statuses is not None and current.status not in statuses):
                return None
            del self._request_tokens[key]
            self._secrets.discard(current.secret)
            self._unindex(current.client_id, key)
            return current

    # ------------------------------------------------------------------
    # Access tokens
    # ------------------------------------------------------------------

    async def get_access_token(self, key: str) -> Optional[AccessToken]:
        return self._access_tokens.get(key)

    async def list_access_tokens(self, client_id: str) -> list[AccessToken]:
        with self._client_locks.hold(client_id):
            keys = sorted(self._client_keys.get(client_id, ()))
            return [self._access_tokens[k] for k in keys if k in self._access_tokens]

    async def delete_access_token(self, key: str) -> Optional[AccessToken]:
        snapshot = self._access_tokens.get(key)
        if snapshot is None:
            return None
        with self._client_locks.hold(snapshot.client_id), self._key_locks.hold(key):
            removed = self._access_tokens.pop(key, None)
            if removed is not None:
                self._secrets.discard(removed.secret)
                self._unindex(removed.client_id, key)
            return removed

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def remove_client_tokens(self, client_id: str) -> RemovalResult:
        with self._client_locks.hold(client_id):
            keys = self._client_keys.pop(client_id, set())
            with self._key_locks.hold(*keys):
                request_count = access_count = 0
                for key in keys:
                    request_token = self._request_tokens.pop(key, None)
                    if request_token is not None:
                        self._secrets.discard(request_token.secret)
                        request_count += 1
                    access_token = self._access_tokens.pop(key, None)
                    if access_token is not None:
                        self._secrets.discard(access_token.secret)
                        access_count += 1

        store_logger.debug(
            f"Removed {request_count} request and {access_count} access tokens",
            extra={"client_id": client_id},
        )
        return RemovalResult(request_tokens=request_count, access_tokens=access_count)

    async def purge_expired(self, now: datetime) -> RemovalResult:
        request_count = access_count = 0

        for key, token in list(self._request_tokens.items()):
            if not token.is_expired(now):
                continue
            with self._client_locks.hold(token.client_id), self._key_locks.hold(key):
                current = self._request_tokens.get(key)
                if current is not None and current.is_expired(now):
                    del self._request_tokens[key]
                    self._secrets.discard(current.secret)
                    self._unindex(current.client_id, key)
                    request_count += 1

        for key, token in list(self._access_tokens.items()):
            if not token.is_expired(now):
                continue
            with self._client_locks.hold(token.client_id), self._key_locks.hold(key):
                current = self._access_tokens.get(key)
                if current is not None and current.is_expired(now):
                    del self._access_tokens[key]
                    self._secrets.discard(current.secret)
                    self._unindex(current.client_id, key)
                    access_count += 1

        if request_count or access_count:
            store_logger.debug(
                f"Purged {request_count} request and {access_count} expired access tokens"
            )
        return RemovalResult(request_tokens=request_count, access_tokens=access_count)
