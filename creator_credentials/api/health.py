"""Health check endpoints."""
import logging

from fastapi import APIRouter
from sqlalchemy import text

from creator_credentials.api.models import HealthResponse
from creator_credentials.db.session import get_db_session

log = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    """Health check endpoint.

    Reports whether the metadata database answers and whether a live
    verification endpoint is configured.
    """
    from creator_credentials.config import VERIFICATION_URL

    database_ok = True
    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))
    except Exception as e:
        log.warning(f"Health check warning: {e}")
        database_ok = False

    return HealthResponse(
        ok=True,
        database=database_ok,
        verification_configured=bool(VERIFICATION_URL),
    )
