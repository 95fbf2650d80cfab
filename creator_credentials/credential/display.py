"""Presentation projections for creator credentials.

Pure functions: they turn stored records and reconciliation results into
fields a UI can render directly. No I/O happens here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from creator_credentials.credential.models import (
    DisplayStatus,
    LocalVerificationTag,
    ReconciliationResult,
    StoredCredentialRecord,
)

CREDENTIAL_TITLE = "Creator Credential"
UNKNOWN = "Unknown"
PENDING_REFERENCE = "pending"

STATUS_COLORS: dict[str, str] = {
    "verified": "green",
    "issued": "blue",
    "pending": "yellow",
    "expired": "red",
}
DEFAULT_COLOR = "gray"


@dataclass(frozen=True)
class DisplayField:
    label: str
    value: str


@dataclass(frozen=True)
class StatusBadge:
    text: str
    color: str


@dataclass(frozen=True)
class CredentialInfo:
    """Stored-metadata view of a holder's credential.

    ``age`` and ``location`` live only in the issued credential, so they are
    None here unless the caller supplies them.
    """
    id: str
    username: str
    name: str
    issued_at: datetime
    status: str
    schema_id: Optional[str] = None
    age: Optional[int] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class CredentialDisplay:
    title: str
    subtitle: str
    fields: tuple[DisplayField, ...] = field(default_factory=tuple)
    status_badge: StatusBadge = StatusBadge(text="ERROR", color=DEFAULT_COLOR)


def local_status(record: StoredCredentialRecord) -> str:
    """Bookkeeping status of a stored record: verified, issued or pending."""
    if record.verification_tag is LocalVerificationTag.VERIFIED:
        return "verified"
    if record.is_issued:
        return "issued"
    return "pending"


def credential_info(
    record: StoredCredentialRecord,
    schema_id: Optional[str] = None,
) -> CredentialInfo:
    """Project a stored record into a CredentialInfo."""
    username = record.username or f"creator_{record.holder_id[:8]}"
    return CredentialInfo(
        id=record.credential_id or PENDING_REFERENCE,
        username=username,
        name=record.display_name or UNKNOWN,
        issued_at=record.created_at,
        status=local_status(record),
        schema_id=schema_id,
    )


def _text(value: Any) -> str:
    return UNKNOWN if value is None or value == "" else str(value)


def format_credential_for_display(
    info: CredentialInfo,
    status: DisplayStatus | str | None = None,
) -> CredentialDisplay:
    """Format credential data for rendering.

    Args:
        info: Stored-metadata view of the credential.
        status: Reconciled status to badge with; defaults to ``info.status``.
    """
    badge_status = status.value if isinstance(status, DisplayStatus) else (status or info.status)
    return CredentialDisplay(
        title=CREDENTIAL_TITLE,
        subtitle=f"@{info.username}",
        fields=(
            DisplayField("Name", _text(info.name)),
            DisplayField("Username", f"@{info.username}"),
            DisplayField("Age", _text(info.age)),
            DisplayField("Location", _text(info.location)),
            DisplayField("Issued", info.issued_at.date().isoformat()),
            DisplayField("Schema ID", _text(info.schema_id)),
        ),
        status_badge=StatusBadge(
            text=badge_status.upper(),
            color=STATUS_COLORS.get(badge_status, DEFAULT_COLOR),
        ),
    )


def display_for_result(
    result: ReconciliationResult,
    schema_id: Optional[str] = None,
) -> Optional[CredentialDisplay]:
    """Display card for a reconciliation result, or None with no stored record."""
    if result.stored_record is None:
        return None
    return format_credential_for_display(
        credential_info(result.stored_record, schema_id),
        result.display,
    )
