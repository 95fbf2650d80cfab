"""Session login/logout endpoints.

Login takes a wallet address already authenticated by the wallet provider
and binds it to a server-side session; the client receives an HttpOnly
cookie holding the opaque session id.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response

from creator_credentials.api.models import LoginRequest, SessionResponse, SessionStatusResponse
from creator_credentials.audit import get_audit_logger
from creator_credentials.auth.session import SessionContext, get_session_store
from creator_credentials.config import (
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_SECURE,
    SESSION_TTL_SECONDS,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


async def current_session(request: Request) -> SessionContext | None:
    """Session referenced by the request cookie, if valid."""
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_id:
        return None
    return await get_session_store().get(session_id)


async def ensure_session_holder(request: Request, holder_id: str | None) -> None:
    """Refuse requests acting for a holder other than the logged-in one.

    Requests without a session cookie are let through.
    """
    session = await current_session(request)
    if session is not None and holder_id and session.holder_id != holder_id:
        get_audit_logger().record(
            action="session.mismatch",
            holder_id=session.holder_id,
            resource=holder_id,
            status="rejected",
            request=request,
        )
        raise HTTPException(status_code=403, detail="Session belongs to a different wallet")


@router.get("", response_model=SessionStatusResponse)
async def session_status(request: Request) -> SessionStatusResponse:
    """Report the holder bound to the request's session, if any."""
    session = await current_session(request)
    if session is None:
        return SessionStatusResponse(authenticated=False)
    return SessionStatusResponse(
        authenticated=True,
        holder_id=session.holder_id,
        expires_at=session.expires_at,
    )


@router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest, request: Request, response: Response) -> SessionResponse:
    """Create a session for a wallet-authenticated holder."""
    holder_id = body.wallet_address.strip()
    if not holder_id:
        raise HTTPException(status_code=400, detail="wallet_address is required")

    session = await get_session_store().login(holder_id, SESSION_TTL_SECONDS)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session.session_id,
        httponly=True,
        samesite="lax",
        secure=SESSION_COOKIE_SECURE,
        path="/",
        max_age=SESSION_TTL_SECONDS,
    )

    get_audit_logger().record(action="session.login", holder_id=holder_id, request=request)
    log.info(f"Session login for {holder_id[:10]}...")
    return SessionResponse(holder_id=holder_id, expires_at=session.expires_at)


@router.post("/logout", response_model=SessionResponse)
async def logout(request: Request, response: Response) -> SessionResponse:
    """Destroy the current session, if any, and clear the cookie."""
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    holder_id = None
    if session_id:
        session = await get_session_store().get(session_id)
        holder_id = session.holder_id if session else None
        await get_session_store().logout(session_id)

    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    get_audit_logger().record(action="session.logout", holder_id=holder_id, request=request)
    return SessionResponse(holder_id=holder_id)
