from typing import Dict, Any, Optional, Callable
import asyncio
from datetime import datetime, timedelta
import structlog

from vesselbot.domain.context.owner_key import normalize_owner_key, mask_owner_key
from vesselbot.domain.models.conversation import Session, SessionLookup, SessionState

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class SessionStore:
    """In-memory single-slot session store with TTL support.

    Every read and mutation happens under one lock, so a sweep can never
    delete a session that was re-saved after it started.
    """

    def __init__(self, default_ttl: int = 300, clock: Optional[Clock] = None):
        self.sessions: Dict[str, Session] = {}
        self.default_ttl = default_ttl
        self._clock: Clock = clock or datetime.utcnow
        self._lock = asyncio.Lock()

    async def save(self, owner_key: str, payload: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """Replace the session for an owner key"""

        key = normalize_owner_key(owner_key)
        if not key:
            logger.warning("Cannot save session: invalid owner key")
            return False

        async with self._lock:
            now = self._clock()
            self.sessions[key] = Session(
                owner_key=key,
                payload=dict(payload),
                created_at=now,
                expires_at=now + timedelta(seconds=self.default_ttl if ttl is None else ttl),
            )

        logger.info("Session saved", owner=mask_owner_key(key))
        return True

    async def lookup(self, owner_key: str) -> SessionLookup:
        """Get the session payload and whether it was active or had expired"""

        key = normalize_owner_key(owner_key)
        if not key:
            return SessionLookup()

        async with self._lock:
            session = self.sessions.get(key)
            if session is None:
                return SessionLookup()

            if session.is_expired(self._clock()):
                del self.sessions[key]
                logger.info("Session expired", owner=mask_owner_key(key))
                return SessionLookup(state=SessionState.EXPIRED)

            return SessionLookup(state=SessionState.ACTIVE, payload=dict(session.payload))

    async def take(self, owner_key: str) -> SessionLookup:
        """Remove and return the session in one step.

        Of two concurrent takes for the same owner key, only one sees it active.
        """

        key = normalize_owner_key(owner_key)
        if not key:
            return SessionLookup()

        async with self._lock:
            session = self.sessions.pop(key, None)

        if session is None:
            return SessionLookup()

        if session.is_expired(self._clock()):
            logger.info("Session expired", owner=mask_owner_key(key))
            return SessionLookup(state=SessionState.EXPIRED)

        logger.info("Session consumed", owner=mask_owner_key(key))
        return SessionLookup(state=SessionState.ACTIVE, payload=session.payload)

    async def get(self, owner_key: str) -> Optional[Dict[str, Any]]:
        """Get the session payload if not expired"""

        found = await self.lookup(owner_key)
        return found.payload

    async def clear(self, owner_key: str) -> bool:
        """Remove the session for an owner key"""

        key = normalize_owner_key(owner_key)
        if not key:
            return False

        async with self._lock:
            removed = self.sessions.pop(key, None) is not None

        if removed:
            logger.info("Session cleared", owner=mask_owner_key(key))
        return removed

    async def sweep(self) -> int:
        """Clear expired sessions and return count"""

        async with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, session in self.sessions.items()
                if session.is_expired(now)
            ]

            for key in expired_keys:
                del self.sessions[key]

        if expired_keys:
            logger.info("Swept expired sessions", removed=len(expired_keys))
        return len(expired_keys)

    def active_count(self) -> int:
        return len(self.sessions)
