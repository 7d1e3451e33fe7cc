"""Token store test doubles: backend faults and interleaved calls."""

import functools
from typing import Awaitable, Callable

from tokengate.core.exceptions import TokenStoreUnavailableError
from tokengate.domains.tokens.memory_store import InMemoryTokenStore

_STORE_OPERATIONS = (
    "insert_request_token",
    "get_request_token",
    "authorize_request_token",
    "consume_request_token",
    "revoke_request_token",
    "delete_request_token",
    "get_access_token",
    "list_access_tokens",
    "delete_access_token",
    "remove_client_tokens",
    "purge_expired",
)


class FlakyTokenStore(InMemoryTokenStore):
    """InMemoryTokenStore that can be told to fail like an unreachable backend.

    Usage:
        store = FlakyTokenStore()
        store.fail_on("insert_request_token")
    """

    def __init__(self) -> None:
        super().__init__(lock_stripes=4)
        self._failing: set[str] = set()
        self.calls: list[str] = []
        for name in _STORE_OPERATIONS:
            setattr(self, name, self._guard(name, getattr(self, name)))

    def _guard(self, name, method):
        @functools.wraps(method)
        async def wrapper(*args, **kwargs):
            self.calls.append(name)
            if name in self._failing:
                raise TokenStoreUnavailableError(name, "backend unreachable")
            return await method(*args, **kwargs)

        return wrapper

    # Test helpers

    def fail_on(self, *operations: str) -> None:
        """Make the named operations raise TokenStoreUnavailableError."""
        self._failing.update(operations)

    def recover(self) -> None:
        """Stop failing."""
        self._failing.clear()


def run_before(store, operation: str, action: Callable[[], Awaitable[object]]) -> None:
    """Make the next call to ``store.<operation>`` await ``action()`` first.

    Places a competing call between the service's read and its
    compare-and-swap. Fires once; later calls go straight through.

    Usage:
        run_before(store, "consume_request_token", lambda: service.remove_tokens("C1"))
    """
    original = getattr(store, operation)
    pending = [action]

    @functools.wraps(original)
    async def wrapper(*args, **kwargs):
        if pending:
            await pending.pop()()
        return await original(*args, **kwargs)

    setattr(store, operation, wrapper)
