"""Creator profile and credential status endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from creator_credentials.api.models import (
    CredentialDisplayModel,
    CredentialInfoResponse,
    CredentialStatusResponse,
    DisplayFieldModel,
    ProfileResponse,
    SaveProfileRequest,
    SaveProfileResponse,
    StatusBadgeModel,
)
from creator_credentials.api.session import ensure_session_holder
from creator_credentials.audit import get_audit_logger
from creator_credentials.credential.display import (
    CredentialDisplay,
    CredentialInfo,
    credential_info,
    display_for_result,
)
from creator_credentials.credential.models import DisplayStatus, StoredCredentialRecord
from creator_credentials.credential.profile import (
    CreatorProfileService,
    ProfileUpdate,
    get_profile_service,
)
from creator_credentials.credential.reconcile import StatusReconciler, get_status_reconciler
from creator_credentials.db.store import MetadataStore, get_metadata_store
from creator_credentials.exceptions import IssuanceRejected, PersistenceRejected

log = logging.getLogger(__name__)
router = APIRouter(prefix="/creators", tags=["creators"])


def _schema_id() -> str | None:
    from creator_credentials.config import CREATOR_SCHEMA_ID

    return CREATOR_SCHEMA_ID


def _profile_response(record: StoredCredentialRecord) -> ProfileResponse:
    return ProfileResponse(
        holder_id=record.holder_id,
        credential_id=record.credential_id,
        display_name=record.display_name,
        about=record.about,
        content_type=record.content_type,
        supported_ages=list(record.supported_ages),
        image_cid=record.image_cid,
        verification_tag=record.verification_tag.value,
        created_at=record.created_at,
    )


def _info_response(info: CredentialInfo) -> CredentialInfoResponse:
    return CredentialInfoResponse(
        id=info.id,
        username=info.username,
        name=info.name,
        age=info.age,
        location=info.location,
        issued_at=info.issued_at,
        status=info.status,
        schema_id=info.schema_id,
    )


def _display_model(display: CredentialDisplay) -> CredentialDisplayModel:
    return CredentialDisplayModel(
        title=display.title,
        subtitle=display.subtitle,
        fields=[DisplayFieldModel(label=f.label, value=f.value) for f in display.fields],
        status_badge=StatusBadgeModel(
            text=display.status_badge.text,
            color=display.status_badge.color,
        ),
    )


@router.post("/profile", response_model=SaveProfileResponse)
async def save_profile(
    body: SaveProfileRequest,
    request: Request,
    service: CreatorProfileService = Depends(get_profile_service),
) -> SaveProfileResponse:
    """Save creator profile metadata for an issued credential.

    Requires the credential reference and the subject the credential was
    issued with; the subject is re-checked before anything is written.
    """
    await ensure_session_holder(request, body.wallet_address)
    audit = get_audit_logger()
    update = ProfileUpdate(
        about=body.about,
        content_type=body.content_type,
        supported_ages=tuple(body.supported_ages),
        display_preference=body.display_preference,
        image_cid=body.image_cid,
        username=body.username,
        real_name=body.real_name,
    )
    subject = body.credential_subject.model_dump() if body.credential_subject else None

    try:
        record = await service.save(body.wallet_address, update, body.credential_id, subject)
    except (IssuanceRejected, PersistenceRejected) as e:
        audit.record(
            action="profile.save",
            holder_id=body.wallet_address,
            resource=body.credential_id,
            status="rejected",
            details={"reason": str(e)},
            request=request,
        )
        raise

    audit.record(
        action="profile.save",
        holder_id=record.holder_id,
        resource=record.credential_id,
        request=request,
    )
    return SaveProfileResponse(profile=_profile_response(record))


@router.get("/credential-info", response_model=CredentialInfoResponse)
async def get_credential_info(
    wallet: str = Query("", description="Holder wallet address"),
    store: MetadataStore = Depends(get_metadata_store),
) -> CredentialInfoResponse:
    """Stored credential metadata for a wallet (no live verification)."""
    if not wallet:
        raise HTTPException(status_code=400, detail="Wallet address is required")

    record = await store.get(wallet)
    if record is None:
        raise HTTPException(status_code=404, detail="Creator credential not found")

    return _info_response(credential_info(record, _schema_id()))


@router.get("/{holder_id}/credential-status", response_model=CredentialStatusResponse)
async def get_credential_status(
    holder_id: str,
    reconciler: StatusReconciler = Depends(get_status_reconciler),
) -> CredentialStatusResponse:
    """Reconciled credential status for a holder.

    Always answers 200; downstream failures show up as ``display_status``
    "error" or as a fallback to the stored record, with ``errors`` listing
    what was absorbed.
    """
    result = await reconciler.reconcile(holder_id)
    schema_id = _schema_id()
    display = display_for_result(result, schema_id)

    return CredentialStatusResponse(
        holder_id=holder_id,
        display_status=result.display.value,
        has_credential=result.display in (DisplayStatus.VERIFIED, DisplayStatus.EXPIRED,
                                          DisplayStatus.ISSUED),
        verification_status=result.verification.value if result.verification else None,
        credential_info=(
            _info_response(credential_info(result.stored_record, schema_id))
            if result.stored_record is not None
            else None
        ),
        display=_display_model(display) if display is not None else None,
        errors=list(result.errors),
    )
