"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class TokenStoreBackend(str, Enum):
    """Token store backends.

    Determines which Token Store implementation the container wires in.
    """

    MEMORY = "memory"
    SQL = "sql"


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like logging defaults.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"


class LogFormat(str, Enum):
    """Log output formats."""

    TEXT = "text"
    JSON = "json"
