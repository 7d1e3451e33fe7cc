"""SQL token store on SQLAlchemy 2.0 async.

Transitions are compare-and-swap UPDATEs whose WHERE clause carries the
expected state, so concurrent callers race on the row and the database
decides the single winner. Under READ COMMITTED the losing UPDATE waits
for the winner's commit, re-evaluates its predicate and matches zero rows.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokengate.core.datetime_utils import ensure_utc
from tokengate.core.exceptions import TokenKeyCollisionError, TokenStoreUnavailableError
from tokengate.core.logging import logger
from tokengate.db.session import get_db_context
from tokengate.domains.tokens.protocols import TokenStoreProtocol
from tokengate.domains.tokens.types import (
    AccessToken,
    AccessTokenState,
    RemovalResult,
    RequestToken,
    RequestTokenState,
    ResourceOwner,
    TokenType,
)
from tokengate.models.oauth_token import OAuthTokenRecord

store_logger = logger.with_prefix("SqlTokenStore: ").with_context(component="token_store")


# ---------------------------------------------------------------------------
# Record <-> domain conversion
# ---------------------------------------------------------------------------


def _owner_to_row(owner: Optional[ResourceOwner]) -> Optional[dict]:
    return owner.model_dump(mode="json") if owner is not None else None


def _owner_from_row(raw: Optional[dict]) -> Optional[ResourceOwner]:
    return ResourceOwner.model_validate(raw) if raw is not None else None


def _request_token_to_record(token: RequestToken) -> OAuthTokenRecord:
    return OAuthTokenRecord(
        key=token.key,
        token_type=TokenType.REQUEST.value,
        secret=token.secret,
        client_id=token.client_id,
        status=token.status.value,
        permissions=sorted(token.permissions),
        uris=list(token.uris),
        http_verbs=list(token.http_verbs),
        issued_at=token.issued_at,
        expires_at=token.expires_at,
        resource_owner=_owner_to_row(token.resource_owner),
        callback=token.callback,
        state=token.state,
        verifier=token.verifier,
    )


def _access_token_to_record(token: AccessToken) -> OAuthTokenRecord:
    return OAuthTokenRecord(
        key=token.key,
        token_type=TokenType.ACCESS.value,
        secret=token.secret,
        client_id=token.client_id,
        status=token.status.value,
        permissions=sorted(token.permissions),
        uris=list(token.uris),
        http_verbs=list(token.http_verbs),
        issued_at=token.issued_at,
        expires_at=token.expires_at,
        resource_owner=_owner_to_row(token.resource_owner),
        request_token_key=token.request_token_key,
    )


def _request_token_from_record(record: OAuthTokenRecord) -> RequestToken:
    return RequestToken(
        key=record.key,
        secret=record.secret,
        client_id=record.client_id,
        status=RequestTokenState(record.status),
        permissions=frozenset(record.permissions or ()),
        uris=tuple(record.uris or ()),
        http_verbs=tuple(record.http_verbs or ()),
        issued_at=ensure_utc(record.issued_at),
        expires_at=ensure_utc(record.expires_at),
        resource_owner=_owner_from_row(record.resource_owner),
        callback=record.callback,
        state=record.state,
        verifier=record.verifier,
    )


def _access_token_from_record(record: OAuthTokenRecord) -> AccessToken:
    return AccessToken(
        key=record.key,
        secret=record.secret,
        client_id=record.client_id,
        status=AccessTokenState(record.status),
        permissions=frozenset(record.permissions or ()),
        uris=tuple(record.uris or ()),
        http_verbs=tuple(record.http_verbs or ()),
        issued_at=ensure_utc(record.issued_at),
        expires_at=ensure_utc(record.expires_at) if record.expires_at else None,
        resource_owner=_owner_from_row(record.resource_owner),
        request_token_key=record.request_token_key,
    )


class SqlTokenStore(TokenStoreProtocol):
    """Token store backed by the ``oauth_token`` table.

    Args:
        session_factory: Async session factory bound to the token database.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session + transaction and translate driver errors.

        IntegrityError means a unique key/secret constraint fired. Any other
        SQLAlchemy failure is a backend fault.
        """
        try:
            async with get_db_context(self._session_factory) as db:
                async with db.begin():
                    yield db
        except IntegrityError as e:
            store_logger.error(f"Unique constraint violated during {operation}")
            raise TokenKeyCollisionError() from e
        except SQLAlchemyError as e:
            store_logger.error(f"Backend failure during {operation}: {e}")
            raise TokenStoreUnavailableError(operation, str(e)) from e

    async def _get_record(
        self, db: AsyncSession, key: str, token_type: TokenType
    ) -> Optional[OAuthTokenRecord]:
        result = await db.execute(
            select(OAuthTokenRecord).where(
                OAuthTokenRecord.key == key,
                OAuthTokenRecord.token_type == token_type.value,
            )
        )
        return result.scalar_one_or_none()

    async def _delete_one(
        self, operation: str, key: str, token_type: TokenType, *criteria
    ) -> Optional[OAuthTokenRecord]:
        async with self._transaction(operation) as db:
            record = await self._get_record(db, key, token_type)
            if record is None:
                return None
            result = await db.execute(
                delete(OAuthTokenRecord)
                .where(OAuthTokenRecord.key == key, *criteria)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            return record

    # ------------------------------------------------------------------
    # Request tokens
    # ------------------------------------------------------------------

    async def insert_request_token(self, token: RequestToken) -> None:
        async with self._transaction("insert_request_token") as db:
            db.add(_request_token_to_record(token))
            await db.flush()

    async def get_request_token(self, key: str) -> Optional[RequestToken]:
        async with self._transaction("get_request_token") as db:
            record = await self._get_record(db, key, TokenType.REQUEST)
            return _request_token_from_record(record) if record is not None else None

    async def authorize_request_token(
        self,
        key: str,
        *,
        verifier: str,
        resource_owner: ResourceOwner,
        now: datetime,
    ) -> Optional[RequestToken]:
        async with self._transaction("authorize_request_token") as db:
            result = await db.execute(
                update(OAuthTokenRecord)
                .where(
                    OAuthTokenRecord.key == key,
                    OAuthTokenRecord.token_type == TokenType.REQUEST.value,
                    OAuthTokenRecord.status == RequestTokenState.PENDING.value,
                    OAuthTokenRecord.expires_at > now,
                )
                .values(
                    status=RequestTokenState.AUTHORIZED.value,
                    verifier=verifier,
                    resource_owner=_owner_to_row(resource_owner),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            record = await self._get_record(db, key, TokenType.REQUEST)
            return _request_token_from_record(record)

    async def consume_request_token(
        self,
        key: str,
        *,
        verifier: str,
        access_token: AccessToken,
        now: datetime,
    ) -> bool:
        async with self._transaction("consume_request_token") as db:
            result = await db.execute(
                update(OAuthTokenRecord)
                .where(
                    OAuthTokenRecord.key == key,
                    OAuthTokenRecord.token_type == TokenType.REQUEST.value,
                    OAuthTokenRecord.status == RequestTokenState.AUTHORIZED.value,
                    OAuthTokenRecord.verifier == verifier,
                    OAuthTokenRecord.expires_at > now,
                )
                .values(status=RequestTokenState.CONSUMED.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return False
            # Same transaction: a failed insert rolls the CONSUMED update back too
            db.add(_access_token_to_record(access_token))
            await db.flush()
            return True

    async def revoke_request_token(self, key: str) -> Optional[RequestToken]:
        record = await self._delete_one(
            "revoke_request_token",
            key,
            TokenType.REQUEST,
            OAuthTokenRecord.status.in_(
                [RequestTokenState.PENDING.value, RequestTokenState.AUTHORIZED.value]
            ),
        )
        return _request_token_from_record(record) if record is not None else None

    async def delete_request_token(self, key: str) -> Optional[RequestToken]:
        record = await self._delete_one("delete_request_token", key, TokenType.REQUEST)
        return _request_token_from_record(record) if record is not None else None

    # ------------------------------------------------------------------
    # Access tokens
    # ------------------------------------------------------------------

    async def get_access_token(self, key: str) -> Optional[AccessToken]:
        async with self._transaction("get_access_token") as db:
            record = await self._get_record(db, key, TokenType.ACCESS)
            return _access_token_from_record(record) if record is not None else None

    async def list_access_tokens(self, client_id: str) -> list[AccessToken]:
        async with self._transaction("list_access_tokens") as db:
            result = await db.execute(
                select(OAuthTokenRecord)
                .where(
                    OAuthTokenRecord.client_id == client_id,
                    OAuthTokenRecord.token_type == TokenType.ACCESS.value,
                )
                .order_by(OAuthTokenRecord.key)
            )
            return [_access_token_from_record(r) for r in result.scalars().all()]

    async def delete_access_token(self, key: str) -> Optional[AccessToken]:
        record = await self._delete_one("delete_access_token", key, TokenType.ACCESS)
        return _access_token_from_record(record) if record is not None else None

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def _delete_where(self, db: AsyncSession, token_type: TokenType, *criteria) -> int:
        result = await db.execute(
            delete(OAuthTokenRecord)
            .where(OAuthTokenRecord.token_type == token_type.value, *criteria)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def remove_client_tokens(self, client_id: str) -> RemovalResult:
        async with self._transaction("remove_client_tokens") as db:
            by_client = OAuthTokenRecord.client_id == client_id
            request_count = await self._delete_where(db, TokenType.REQUEST, by_client)
            access_count = await self._delete_where(db, TokenType.ACCESS, by_client)

        store_logger.debug(
            f"Removed {request_count} request and {access_count} access tokens",
            extra={"client_id": client_id},
        )
        return RemovalResult(request_tokens=request_count, access_tokens=access_count)

    async def purge_expired(self, now: datetime) -> RemovalResult:
        async with self._transaction("purge_expired") as db:
            expired = OAuthTokenRecord.expires_at <= now
            request_count = await self._delete_where(db, TokenType.REQUEST, expired)
            access_count = await self._delete_where(db, TokenType.ACCESS, expired)
        return RemovalResult(request_tokens=request_count, access_tokens=access_count)
