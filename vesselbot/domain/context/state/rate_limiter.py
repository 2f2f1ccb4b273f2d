from typing import Dict, Optional, Callable
import asyncio
from datetime import datetime, timedelta
import structlog

from vesselbot.domain.context.owner_key import mask_owner_key
from vesselbot.domain.models.conversation import RateRecord, RateLimitStatus

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

LOW_REMAINING_WARNING = 5


class RateLimiter:
    """Fixed-window request counter per owner key.

    Bursts straddling a window boundary are let through; this is a plain
    counter, not a sliding window.
    """

    def __init__(
        self,
        max_requests: int = 50,
        window_seconds: int = 3600,
        clock: Optional[Clock] = None,
    ):
        self.max_requests = max_requests
        self.window = timedelta(seconds=window_seconds)
        self.records: Dict[str, RateRecord] = {}
        self._clock: Clock = clock or datetime.utcnow
        self._lock = asyncio.Lock()

    async def check(self, owner_key: str) -> RateLimitStatus:
        """Count a request against the owner's window"""

        async with self._lock:
            now = self._clock()
            record = self.records.get(owner_key)

            if record is None or now > record.window_reset_at:
                record = RateRecord(owner_key=owner_key, count=0, window_reset_at=now + self.window)
                self.records[owner_key] = record

            allowed = record.count < self.max_requests
            if allowed:
                record.count += 1

            status = RateLimitStatus(
                allowed=allowed,
                remaining=max(0, self.max_requests - record.count),
                reset_at=record.window_reset_at,
            )

        if not allowed:
            logger.warning("Rate limit exceeded", owner=mask_owner_key(owner_key))
        elif status.remaining < LOW_REMAINING_WARNING:
            logger.info("Rate limit nearly reached", owner=mask_owner_key(owner_key), remaining=status.remaining)

        return status

    async def prune(self) -> int:
        """Drop records whose window has already elapsed"""

        async with self._lock:
            now = self._clock()
            stale = [key for key, record in self.records.items() if now > record.window_reset_at]
            for key in stale:
                del self.records[key]

        return len(stale)
