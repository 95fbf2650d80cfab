"""Creator credential issuance endpoint."""
import logging

from fastapi import APIRouter, Depends, Request

from creator_credentials.api.models import IssueCredentialRequest, IssueCredentialResponse
from creator_credentials.api.session import ensure_session_holder
from creator_credentials.audit import get_audit_logger
from creator_credentials.credential.issuance import CredentialIssuanceService, get_issuance_service
from creator_credentials.exceptions import IssuanceRejected

log = logging.getLogger(__name__)
router = APIRouter(prefix="/credentials", tags=["credentials"])


@router.post("/creator/issue", response_model=IssueCredentialResponse)
async def issue_creator_credential(
    body: IssueCredentialRequest,
    request: Request,
    service: CredentialIssuanceService = Depends(get_issuance_service),
) -> IssueCredentialResponse:
    """Issue a creator credential document for a wallet.

    The subject must pass the issuance gate; the response carries the
    credential, the issuance auth token and the program/schema ids.
    """
    await ensure_session_holder(request, body.wallet_address)
    audit = get_audit_logger()
    subject = body.credential_subject.model_dump() if body.credential_subject else None

    try:
        issued = service.issue(body.wallet_address, subject)
    except IssuanceRejected as e:
        audit.record(
            action="credential.issue",
            holder_id=body.wallet_address,
            status="rejected",
            details={"reason": e.reason},
            request=request,
        )
        raise

    audit.record(
        action="credential.issue",
        holder_id=body.wallet_address,
        resource=issued.credential_id,
        request=request,
    )
    return IssueCredentialResponse(
        credential=issued.credential,
        auth_token=issued.auth_token,
        program_id=issued.program_id,
        schema_id=issued.schema_id,
    )
