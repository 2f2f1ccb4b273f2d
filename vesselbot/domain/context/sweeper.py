from typing import Optional
import asyncio
import structlog

from .memory.session_store import SessionStore
from .state.rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)


class SessionSweeper:
    """Periodic eviction of expired sessions and stale rate windows"""

    def __init__(
        self,
        session_store: SessionStore,
        rate_limiter: Optional[RateLimiter] = None,
        interval_seconds: float = 60,
    ):
        self.session_store = session_store
        self.rate_limiter = rate_limiter
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the sweep loop on the running event loop"""
        if self.running:
            return

        self._task = asyncio.create_task(self._run())
        logger.info("Session sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self):
        """Cancel the sweep loop and wait for it to finish"""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session sweeper stopped")

    async def sweep_once(self) -> int:
        removed = await self.session_store.sweep()
        if self.rate_limiter is not None:
            await self.rate_limiter.prune()
        return removed

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error("Session sweep error", error=str(e))
