"""Background task that garbage-collects expired tokens.

A lightweight ``asyncio.Task`` calls ``purge_expired()`` on the lifecycle
service every *interval* seconds. Lazy deletion on read already hides
expired tokens from callers; the sweeper bounds how long their records
linger in the store.

The loop tolerates store outages by logging a warning and continuing
rather than killing the task.
"""

import asyncio
from typing import Optional

from tokengate.core.exceptions import InfrastructureError
from tokengate.core.logging import logger
from tokengate.domains.tokens.protocols import TokenLifecycleServiceProtocol
from tokengate.domains.tokens.types import RemovalResult

sweeper_logger = logger.with_prefix("ExpiredTokenSweeper: ").with_context(component="sweeper")


class ExpiredTokenSweeper:
    """Periodically purge expired request and access tokens.

    Args:
        service: The token lifecycle service to purge through.
        interval: Seconds between sweeps (default 60.0).
    """

    def __init__(self, service: TokenLifecycleServiceProtocol, interval: float = 60.0) -> None:
        self._service = service
        self._interval = interval
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Create the background sweeping task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def sweep_once(self) -> Optional[RemovalResult]:
        """Run a single purge. Returns None if the store was unavailable."""
        try:
            return await self._service.purge_expired()
        except InfrastructureError:
            sweeper_logger.warning("Failed to purge expired tokens", exc_info=True)
            return None

    async def _loop(self) -> None:
        while True:
            await self.sweep_once()
            await asyncio.sleep(self._interval)
