"""Models for the application."""

from ._base import Base
from .oauth_token import OAuthTokenRecord

__all__ = [
    "Base",
    "OAuthTokenRecord",
]
