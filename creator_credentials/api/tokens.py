"""Token minting endpoint."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from creator_credentials.api.models import MintTokenRequest, MintTokenResponse
from creator_credentials.audit import get_audit_logger
from creator_credentials.tokens.issuer import (
    DEFAULT_TTL_SECONDS,
    TokenIssuer,
    TokenOperation,
    get_token_issuer,
)

log = logging.getLogger(__name__)
router = APIRouter(tags=["tokens"])


@router.post("/tokens", response_model=MintTokenResponse)
async def mint_token(
    body: MintTokenRequest,
    request: Request,
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> MintTokenResponse:
    """Mint a signed partner token for a verification or issuance flow."""
    try:
        operation = TokenOperation(body.operation)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid operation: {body.operation}. Must be 'verification' or 'issuance'",
        )

    signed = issuer.mint(
        body.wallet_address,
        operation,
        body.expiry_seconds or DEFAULT_TTL_SECONDS,
    )

    get_audit_logger().record(
        action=f"token.{operation.value}",
        holder_id=body.wallet_address,
        details={"kid": signed.kid, "exp": signed.expires_at},
        request=request,
    )
    return MintTokenResponse(
        token=signed.token,
        algorithm=signed.algorithm,
        kid=signed.kid,
        expires_at=signed.expires_at,
    )
