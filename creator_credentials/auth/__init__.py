"""Holder session management."""

from creator_credentials.auth.session import (
    InMemorySessionStore,
    SessionContext,
    SessionStore,
    get_session_store,
    reset_session_store,
)

__all__ = [
    "InMemorySessionStore",
    "SessionContext",
    "SessionStore",
    "get_session_store",
    "reset_session_store",
]
