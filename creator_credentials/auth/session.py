"""Session context for wallet-authenticated holders.

A session binds an opaque, server-side session id to the holder (wallet
address) that logged in. It is created on login and destroyed on logout;
nothing else holds authentication state.

Note: InMemorySessionStore is per-instance and sessions are lost on restart.
"""

import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

log = logging.getLogger(__name__)


# =============================================================================
# SESSION DATACLASS
# =============================================================================


@dataclass(frozen=True)
class SessionContext:
    """Authenticated holder session.

    Attributes:
        session_id: Cryptographically random session identifier
        holder_id: Wallet address of the logged-in holder
        created_at: When the session was created
        expires_at: When the session expires
    """

    session_id: str
    holder_id: str
    created_at: datetime
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) > self.expires_at

    @property
    def ttl_seconds(self) -> int:
        """Remaining time-to-live in seconds."""
        remaining = (self.expires_at - datetime.now(timezone.utc)).total_seconds()
        return max(0, int(remaining))


# =============================================================================
# SESSION STORE INTERFACE
# =============================================================================


class SessionStore(ABC):
    """Abstract interface for session storage."""

    @abstractmethod
    async def login(self, holder_id: str, ttl_seconds: int) -> SessionContext:
        """Create a session for a holder."""
        ...

    @abstractmethod
    async def get(self, session_id: str) -> SessionContext | None:
        """Return the session, or None if unknown or expired."""
        ...

    @abstractmethod
    async def logout(self, session_id: str) -> bool:
        """Destroy a session. Returns True if it existed."""
        ...

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Remove expired sessions. Returns the number removed."""
        ...


# =============================================================================
# IN-MEMORY SESSION STORE
# =============================================================================


class InMemorySessionStore(SessionStore):
    """In-memory session store guarded by an asyncio lock."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionContext] = {}
        self._lock = asyncio.Lock()

    async def login(self, holder_id: str, ttl_seconds: int) -> SessionContext:
        if not holder_id:
            raise ValueError("holder_id is required to create a session")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        # 32 bytes = 256 bits
        session_id = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        session = SessionContext(
            session_id=session_id,
            holder_id=holder_id,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

        async with self._lock:
            self._sessions[session_id] = session

        log.debug(f"Created session {session_id[:8]}... for {holder_id[:10]}...")
        return session

    async def get(self, session_id: str) -> SessionContext | None:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired:
                del self._sessions[session_id]
                log.debug(f"Session {session_id[:8]}... expired")
                return None
            return session

    async def logout(self, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            log.debug(f"Destroyed session {session_id[:8]}...")
        return session is not None

    async def cleanup_expired(self) -> int:
        async with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired]
            for sid in expired:
                del self._sessions[sid]

        if expired:
            log.info(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    @property
    def session_count(self) -> int:
        return len(self._sessions)


# Global session store instance
_session_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Get the global session store instance."""
    global _session_store

    if _session_store is None:
        _session_store = InMemorySessionStore()

    return _session_store


def reset_session_store() -> None:
    """Reset the global session store (for testing)."""
    global _session_store
    _session_store = None
