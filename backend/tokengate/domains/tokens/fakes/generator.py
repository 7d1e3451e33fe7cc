"""Fake token generator for testing."""

import itertools
from collections import deque
from typing import Optional

from tokengate.domains.tokens.protocols import TokenGeneratorProtocol


class FakeTokenGenerator(TokenGeneratorProtocol):
    """Deterministic TokenGeneratorProtocol.

    Produces ``key-1``, ``secret-1``, ``verifier-1``... Queue explicit values
    with ``queue_keys`` (e.g. to force a key collision) or make the next call
    raise with ``fail_next``.

    Usage:
        gen = FakeTokenGenerator()
        gen.queue_keys("dup", "dup")
    """

    def __init__(self) -> None:
        """Initialize counters and empty queues."""
        self._counter = itertools.count(1)
        self._keys: deque[str] = deque()
        self._secrets: deque[str] = deque()
        self._verifiers: deque[str] = deque()
        self._error: Optional[Exception] = None
        self.calls: list[str] = []

    def _next(self, kind: str, queued: deque[str]) -> str:
        self.calls.append(kind)
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        if queued:
            return queued.popleft()
        return f"{kind}-{next(self._counter)}"

    def new_key(self) -> str:
        return self._next("key", self._keys)

    def new_secret(self) -> str:
        return self._next("secret", self._secrets)

    def new_verifier(self) -> str:
        return self._next("verifier", self._verifiers)

    # Test helpers

    def queue_keys(self, *keys: str) -> None:
        """Return these values from the next new_key() calls."""
        self._keys.extend(keys)

    def queue_secrets(self, *secrets: str) -> None:
        """Return these values from the next new_secret() calls."""
        self._secrets.extend(secrets)

    def queue_verifiers(self, *verifiers: str) -> None:
        """Return these values from the next new_verifier() calls."""
        self._verifiers.extend(verifiers)

    def fail_next(self, error: Exception) -> None:
        """Make the next generation call raise ``error``."""
        self._error = error
