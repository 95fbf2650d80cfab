"""Pydantic request/response models for the creator credential API."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Common
# =============================================================================


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: Optional[str] = None
    fields: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool
    service: str = "creator-credentials"
    database: bool = True
    verification_configured: bool = False


# =============================================================================
# Issuance
# =============================================================================


class CredentialSubjectModel(BaseModel):
    """Candidate credential claims.

    Types are loose so the issuance gate, not request parsing, decides what
    is acceptable and reports why.
    """

    username: Any = None
    name: Any = None
    age: Any = None
    location: Any = None
    creator: Any = None


class IssueCredentialRequest(BaseModel):
    wallet_address: Optional[str] = Field(None, description="Holder wallet address")
    credential_subject: Optional[CredentialSubjectModel] = Field(
        None, description="Claims for the creator credential"
    )


class IssueCredentialResponse(BaseModel):
    success: bool = True
    credential: dict[str, Any]
    auth_token: str
    program_id: Optional[str] = None
    schema_id: Optional[str] = None


# =============================================================================
# Creator profile
# =============================================================================


class SaveProfileRequest(BaseModel):
    wallet_address: Optional[str] = None
    credential_id: Optional[str] = Field(None, description="Reference of the issued credential")
    credential_subject: Optional[CredentialSubjectModel] = Field(
        None, description="Claims the credential was issued with"
    )
    about: Optional[str] = None
    content_type: Optional[str] = None
    supported_ages: list[str] = Field(default_factory=list)
    display_preference: Optional[str] = None
    image_cid: Optional[str] = None
    username: Optional[str] = None
    real_name: Optional[str] = None


class ProfileResponse(BaseModel):
    holder_id: str
    credential_id: Optional[str] = None
    display_name: Optional[str] = None
    about: Optional[str] = None
    content_type: Optional[str] = None
    supported_ages: list[str] = Field(default_factory=list)
    image_cid: Optional[str] = None
    verification_tag: str
    created_at: datetime


class SaveProfileResponse(BaseModel):
    success: bool = True
    profile: ProfileResponse


class CredentialInfoResponse(BaseModel):
    id: str
    username: str
    name: str
    age: Optional[int] = None
    location: Optional[str] = None
    issued_at: datetime
    status: str
    schema_id: Optional[str] = None


# =============================================================================
# Status
# =============================================================================


class DisplayFieldModel(BaseModel):
    label: str
    value: str


class StatusBadgeModel(BaseModel):
    text: str
    color: str


class CredentialDisplayModel(BaseModel):
    title: str
    subtitle: str
    fields: list[DisplayFieldModel]
    status_badge: StatusBadgeModel


class CredentialStatusResponse(BaseModel):
    holder_id: str
    display_status: str
    has_credential: bool
    verification_status: Optional[str] = None
    credential_info: Optional[CredentialInfoResponse] = None
    display: Optional[CredentialDisplayModel] = None
    errors: list[str] = Field(default_factory=list)


# =============================================================================
# Tokens
# =============================================================================


class MintTokenRequest(BaseModel):
    operation: str = Field(..., description="'verification' or 'issuance'")
    wallet_address: Optional[str] = Field(None, description="Subject of the token")
    expiry_seconds: Optional[int] = Field(None, gt=0, description="Token lifetime")


class MintTokenResponse(BaseModel):
    success: bool = True
    token: str
    algorithm: str
    kid: Optional[str] = None
    expires_at: int


# =============================================================================
# Session
# =============================================================================


class LoginRequest(BaseModel):
    wallet_address: str = Field(..., min_length=1, description="Authenticated wallet address")


class SessionResponse(BaseModel):
    success: bool = True
    holder_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class SessionStatusResponse(BaseModel):
    authenticated: bool = Field(..., description="Whether a live session is attached")
    holder_id: Optional[str] = None
    expires_at: Optional[datetime] = None


# =============================================================================
# Assets
# =============================================================================


class PinnedImageResponse(BaseModel):
    cid: str
    gateway_url: str
    size: int
