"""Configuration module for Tokengate.

Provides centralized configuration management with type-safe enums.

Usage:
    from tokengate.core.config import settings, TokenStoreBackend

    if settings.TOKEN_STORE_BACKEND == TokenStoreBackend.SQL:
        ...
"""

from tokengate.core.config.enums import Environment, LogFormat, TokenStoreBackend
from tokengate.core.config.settings import Settings

__all__ = [
    "Settings",
    "TokenStoreBackend",
    "Environment",
    "LogFormat",
    "settings",
]

# Singleton settings instance
settings = Settings()
