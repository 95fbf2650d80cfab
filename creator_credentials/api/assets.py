"""Image upload endpoint."""
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from creator_credentials.api.models import PinnedImageResponse
from creator_credentials.api.session import current_session
from creator_credentials.assets.pinning import IMAGE_KINDS, ImageMetadata, PinningClient, get_pinning_client
from creator_credentials.audit import get_audit_logger
from creator_credentials.exceptions import AssetRejected, AssetUploadError

log = logging.getLogger(__name__)
router = APIRouter(prefix="/assets", tags=["assets"])


@router.post("/images", response_model=PinnedImageResponse)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    image_type: str = Form("profile"),
    description: str = Form(""),
    client: PinningClient = Depends(get_pinning_client),
) -> PinnedImageResponse:
    """Pin a creator image and return its content identifier."""
    if image_type not in IMAGE_KINDS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid image type: {image_type}. Must be one of: {', '.join(IMAGE_KINDS)}",
        )

    session = await current_session(request)
    holder_id = session.holder_id if session else None
    content = await file.read()
    audit = get_audit_logger()

    try:
        pinned = await client.upload_image(
            content,
            file.filename or "upload",
            file.content_type or "application/octet-stream",
            ImageMetadata(
                creator_id=holder_id or "",
                image_type=image_type,
                description=description,
            ),
        )
    except (AssetRejected, AssetUploadError) as e:
        audit.record(
            action="asset.upload",
            holder_id=holder_id,
            status="rejected" if isinstance(e, AssetRejected) else "error",
            details={"reason": str(e)},
            request=request,
        )
        raise

    audit.record(action="asset.upload", holder_id=holder_id, resource=pinned.cid, request=request)
    return PinnedImageResponse(cid=pinned.cid, gateway_url=pinned.gateway_url, size=pinned.size)
