import asyncio
import logging
import time
from dataclasses import fields, replace
from typing import Any, Callable, Dict, Optional

from models.session import Session

logger = logging.getLogger(__name__)

_SESSION_FIELDS = {f.name for f in fields(Session)} - {'session_key'}


class InMemorySessionStore:
    """
    Process-local session storage keyed by ``<chat_id>_<user_id>``.

    Reads return copies, so callers only change a session through ``upsert``
    and ``clear_pending``. Stale sessions are dropped lazily on ``get`` and
    in bulk by ``evict_expired``.
    """

    def __init__(
        self,
        timeout_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic
    ):
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock(self, session_key: str) -> asyncio.Lock:
        lock = self._locks.get(session_key)

        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_key] = lock

        return lock

    def is_expired(self, session: Session, now: Optional[float] = None) -> bool:
        if now is None:
            now = self.clock()
        return now - session.last_activity > self.timeout_seconds

    async def get(self, session_key: str) -> Optional[Session]:
        session = self._sessions.get(session_key)

        if session is None:
            return None

        if self.is_expired(session) and not session.executing:
            logger.info("Session %s expired, evicting", session_key)
            await self.evict(session_key)
            return None

        return replace(session)

    async def upsert(self, session_key: str, **changes: Any) -> Session:
        unknown = set(changes) - _SESSION_FIELDS
        if unknown:
            raise ValueError(f"Unknown session fields: {', '.join(sorted(unknown))}")

        session = self._sessions.get(session_key)

        if session is None:
            changes.setdefault('last_activity', self.clock())
            session = Session(session_key=session_key, **changes)
            self._sessions[session_key] = session
            logger.info("Session %s created", session_key)
            return replace(session)

        # The group flag is fixed when the session is created.
        changes.pop('is_group_context', None)

        for name, value in changes.items():
            setattr(session, name, value)

        return replace(session)

    async def clear_pending(self, session_key: str) -> None:
        session = self._sessions.get(session_key)

        if session is not None:
            session.pending_transaction = None

    async def evict(self, session_key: str) -> None:
        self._sessions.pop(session_key, None)

        lock = self._locks.get(session_key)
        if lock is not None and not lock.locked():
            del self._locks[session_key]

    async def evict_expired(self) -> int:
        now = self.clock()
        expired = [
            key for key, session in self._sessions.items()
            if self.is_expired(session, now) and not session.executing
        ]

        for key in expired:
            await self.evict(key)

        if expired:
            logger.info("Evicted %d expired sessions", len(expired))

        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
