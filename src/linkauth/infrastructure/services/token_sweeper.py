"""Periodic sweep of expired tokens.

Expired tokens are already rejected at validation time; the sweep only keeps
storage from growing. A failed pass is logged and the next one runs on time.
"""

import asyncio

from linkauth.core.logging import get_logger
from linkauth.domain.services.token_lifecycle import TokenLifecycle

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 30 * 60


class TokenSweeper:
    """Background task deleting expired tokens on a fixed interval.

    Lifecycle:
    - start() creates the task; the first pass runs after one interval.
    - stop() sets the shutdown event and waits for the task to exit.
    - sweep_once() runs a single pass.
    """

    def __init__(
        self,
        tokens: TokenLifecycle,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        shutdown: asyncio.Event | None = None,
    ) -> None:
        self.tokens = tokens
        self.interval_seconds = interval_seconds
        self.shutdown = shutdown or asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        """Whether the background task is currently active."""
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        """Run one sweep and return the number of deleted tokens."""
        return await self.tokens.sweep_expired()

    async def run(self) -> None:
        """Sweep every interval until the shutdown event is set."""
        logger.info("Token sweeper started", interval_seconds=self.interval_seconds)
        while not self.shutdown.is_set():
            try:
                await asyncio.wait_for(self.shutdown.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                await self.sweep_once()
        logger.info("Token sweeper stopped")

    def start(self) -> None:
        """Start the sweep loop. No-op if already running."""
        if self.is_running:
            logger.warning("Token sweeper already running")
            return
        self._task = asyncio.create_task(self.run(), name="linkauth-token-sweeper")

    async def stop(self) -> None:
        """Signal shutdown and wait for the loop to exit."""
        self.shutdown.set()
        if self._task is not None:
            await self._task
            self._task = None
