"""Creator credential FastAPI application."""
import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from creator_credentials import __version__
from creator_credentials.api import assets, creators, credential, health, session, tokens
from creator_credentials.auth.session import get_session_store
from creator_credentials.config import SESSION_CLEANUP_INTERVAL
from creator_credentials.exceptions import (
    AssetRejected,
    AssetUploadError,
    ConfigurationError,
    CredentialBuildError,
    DuplicateCredentialReference,
    IssuanceRejected,
    PersistenceRejected,
    ProfileRejected,
    TokenSigningError,
)
from creator_credentials.logging_config import configure_logging

configure_logging()
log = logging.getLogger("creator-credentials")


async def _session_cleanup_task():
    """Periodically clean up expired sessions."""
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL)
        try:
            count = await get_session_store().cleanup_expired()
            if count > 0:
                log.debug(f"Session cleanup: removed {count} expired sessions")
        except Exception as e:
            log.error(f"Session cleanup error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    log.info("Starting creator credential service...")

    from creator_credentials.db.session import init_database
    init_database()

    cleanup_task = asyncio.create_task(_session_cleanup_task())
    log.info(f"Session cleanup task started (interval: {SESSION_CLEANUP_INTERVAL}s)")
    log.info("Creator credential service started")

    yield

    log.info("Shutting down creator credential service...")
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    log.info("Creator credential service stopped")


app = FastAPI(
    title="Creator Credentials",
    version=__version__,
    description="Creator credential issuance and status reconciliation",
    lifespan=lifespan,
)


@app.get("/version")
def version():
    """Return service version and deployed commit."""
    git_sha = os.getenv("GIT_SHA", "unknown")
    result = {"version": __version__, "git_sha": git_sha}
    if git_sha != "unknown":
        result["short_sha"] = git_sha[:7]
    return result


# -----------------------------------------------------------------------------
# Error mapping
# -----------------------------------------------------------------------------

@app.exception_handler(IssuanceRejected)
async def issuance_rejected_handler(request: Request, exc: IssuanceRejected):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Credential issuance blocked",
            "detail": exc.reason,
            "fields": list(exc.fields),
        },
    )


@app.exception_handler(ProfileRejected)
async def profile_rejected_handler(request: Request, exc: ProfileRejected):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Creator profile rejected",
            "detail": exc.reason,
            "fields": list(exc.fields),
        },
    )


@app.exception_handler(DuplicateCredentialReference)
async def duplicate_reference_handler(request: Request, exc: DuplicateCredentialReference):
    return JSONResponse(
        status_code=409,
        content={"error": "Credential reference conflict", "detail": str(exc)},
    )


@app.exception_handler(PersistenceRejected)
async def persistence_rejected_handler(request: Request, exc: PersistenceRejected):
    return JSONResponse(
        status_code=400,
        content={"error": "Credential record rejected", "detail": str(exc)},
    )


@app.exception_handler(AssetRejected)
async def asset_rejected_handler(request: Request, exc: AssetRejected):
    return JSONResponse(
        status_code=400,
        content={"error": "Image rejected", "detail": str(exc)},
    )


@app.exception_handler(AssetUploadError)
async def asset_upload_error_handler(request: Request, exc: AssetUploadError):
    return JSONResponse(
        status_code=502,
        content={"error": "Image upload failed", "detail": str(exc)},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    log.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Service misconfigured", "detail": str(exc)},
    )


@app.exception_handler(TokenSigningError)
@app.exception_handler(CredentialBuildError)
async def internal_failure_handler(request: Request, exc: Exception):
    log.error(f"Internal failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Credential issuance failed", "detail": str(exc)},
    )


app.include_router(health.router)
app.include_router(session.router)
app.include_router(credential.router)
app.include_router(creators.router)
app.include_router(tokens.router)
app.include_router(assets.router)
