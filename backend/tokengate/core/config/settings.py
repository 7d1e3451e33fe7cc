"""Application settings.

All defaults are defined here - no external system owns defaults.
Uses Pydantic Settings for automatic env var loading with the
``TOKENGATE_`` prefix, e.g. ``TOKENGATE_REQUEST_TOKEN_TTL_SECONDS=300``.
"""

from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokengate.core.config.enums import Environment, LogFormat, TokenStoreBackend


class Settings(BaseSettings):
    """Tokengate settings with automatic env var loading."""

    model_config = SettingsConfigDict(
        env_prefix="TOKENGATE_",
        env_file=".env",
        extra="ignore",
    )

    ENVIRONMENT: Environment = Environment.LOCAL

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: LogFormat = LogFormat.TEXT

    # Persistence
    TOKEN_STORE_BACKEND: TokenStoreBackend = TokenStoreBackend.MEMORY
    DATABASE_URL: Optional[str] = Field(
        None, description="Async SQLAlchemy URL, e.g. postgresql+asyncpg://user:pw@host/db"
    )
    DB_POOL_SIZE: int = Field(10, ge=1)
    DB_POOL_MAX_OVERFLOW: int = Field(20, ge=0)
    LOCK_STRIPES: int = Field(64, ge=1, description="Lock stripes for the in-memory store")

    # Token lifetimes
    REQUEST_TOKEN_TTL_SECONDS: int = Field(600, description="Default request token lifetime")
    MAX_REQUEST_TOKEN_TTL_SECONDS: int = Field(
        3600, description="Upper bound for per-registration lifetime overrides"
    )
    ACCESS_TOKEN_TTL_SECONDS: Optional[int] = Field(
        30 * 24 * 3600, description="Access token lifetime; None or 0 means non-expiring"
    )

    # Secret generation (bytes of entropy before url-safe encoding)
    TOKEN_BYTES: int = Field(32, ge=16)
    VERIFIER_BYTES: int = Field(20, ge=8)

    # Expired token garbage collection
    SWEEP_INTERVAL_SECONDS: float = Field(60.0, gt=0)

    # Registry seed files
    CLIENTS_FILE: Optional[Path] = None
    PERMISSIONS_FILE: Optional[Path] = None

    @model_validator(mode="after")
    def validate_config_logic(self):
        """Validate that config combinations make sense."""
        if self.REQUEST_TOKEN_TTL_SECONDS <= 0:
            raise ValueError("REQUEST_TOKEN_TTL_SECONDS must be positive")
        if self.REQUEST_TOKEN_TTL_SECONDS > self.MAX_REQUEST_TOKEN_TTL_SECONDS:
            raise ValueError(
                "REQUEST_TOKEN_TTL_SECONDS cannot exceed MAX_REQUEST_TOKEN_TTL_SECONDS "
                f"({self.REQUEST_TOKEN_TTL_SECONDS} > {self.MAX_REQUEST_TOKEN_TTL_SECONDS})"
            )
        if self.ACCESS_TOKEN_TTL_SECONDS is not None and self.ACCESS_TOKEN_TTL_SECONDS < 0:
            raise ValueError("ACCESS_TOKEN_TTL_SECONDS cannot be negative")
        if self.TOKEN_STORE_BACKEND == TokenStoreBackend.SQL and not self.DATABASE_URL:
            raise ValueError("DATABASE_URL is required when TOKEN_STORE_BACKEND is 'sql'")
        return self

    @property
    def request_token_ttl(self) -> timedelta:
        """Default request token lifetime."""
        return timedelta(seconds=self.REQUEST_TOKEN_TTL_SECONDS)

    @property
    def max_request_token_ttl(self) -> timedelta:
        """Upper bound applied to registration lifetime overrides."""
        return timedelta(seconds=self.MAX_REQUEST_TOKEN_TTL_SECONDS)

    @property
    def access_token_ttl(self) -> Optional[timedelta]:
        """Access token lifetime, or None for non-expiring tokens."""
        if not self.ACCESS_TOKEN_TTL_SECONDS:
            return None
        return timedelta(seconds=self.ACCESS_TOKEN_TTL_SECONDS)
