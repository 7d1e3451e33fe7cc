"""OAuth token model.

Both token families share one table so that key and secret uniqueness
across families is enforced by the database, and a client's tokens can be
removed with a single DELETE.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from tokengate.models._base import Base


class OAuthTokenRecord(Base):
    """Request or access token row."""

    __tablename__ = "oauth_token"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    token_type: Mapped[str] = mapped_column(String(16), nullable=False)
    secret: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    client_id: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    permissions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    uris: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    http_verbs: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resource_owner: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Request token columns
    callback: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    verifier: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Access token columns
    request_token_key: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True, unique=True
    )

    __table_args__ = (
        Index("idx_oauth_token_client_id", "client_id"),
        Index("idx_oauth_token_expires_at", "expires_at"),
    )
