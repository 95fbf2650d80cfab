"""State model for creator credentials.

The live verification outcome and the locally tracked verification tag are
separate enums on purpose: only ``VerificationOutcome`` may drive the
display status.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional


class VerificationOutcome(str, Enum):
    """Live attestation from the external verification service.

    ``ERROR`` is a local/transport failure, not a negative attestation.
    """
    COMPLIANT = "Compliant"
    NON_COMPLIANT = "Non-Compliant"
    PENDING = "Pending"
    REVOKING = "Revoking"
    REVOKED = "Revoked"
    EXPIRED = "Expired"
    NOT_FOUND = "NotFound"
    ERROR = "error"


class LocalVerificationTag(str, Enum):
    """Bookkeeping tag stored with the record. Never authoritative."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class DisplayStatus(str, Enum):
    """Presentation-facing merged status. Derived, never stored."""
    NOT_ISSUED = "not_issued"
    ISSUED = "issued"
    VERIFIED = "verified"
    EXPIRED = "expired"
    ERROR = "error"


@dataclass(frozen=True)
class CredentialSubject:
    """Candidate claims for a new creator credential.

    Fields are deliberately loose (``Any``) so that malformed input can reach
    the issuance gate and be rejected there with a precise reason.
    """
    username: Any = None
    name: Any = None
    age: Any = None
    location: Any = None
    creator: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CredentialSubject":
        return cls(
            username=data.get("username"),
            name=data.get("name"),
            age=data.get("age"),
            location=data.get("location"),
            creator=data.get("creator"),
        )

    def to_claims(self, holder_id: str) -> dict[str, Any]:
        """Claims embedded in the issued credential (subject id = holder)."""
        return {
            "id": holder_id,
            "username": self.username,
            "name": self.name,
            "age": self.age,
            "location": self.location,
        }


@dataclass(frozen=True)
class StoredCredentialRecord:
    """Durable metadata for a holder, as read from the metadata store."""
    holder_id: str
    credential_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    verification_tag: LocalVerificationTag = LocalVerificationTag.PENDING
    username: Optional[str] = None
    display_name: Optional[str] = None
    display_preference: Optional[str] = None
    about: Optional[str] = None
    content_type: Optional[str] = None
    supported_ages: tuple[str, ...] = ()
    image_cid: Optional[str] = None

    @property
    def is_issued(self) -> bool:
        return self.credential_id is not None


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of merging stored metadata with the live verification status.

    ``verification`` is None only when the reconciliation itself failed.
    ``errors`` lists absorbed downstream failures, for diagnostics.
    """
    holder_id: str
    stored_record: Optional[StoredCredentialRecord]
    verification: Optional[VerificationOutcome]
    display: DisplayStatus
    errors: tuple[str, ...] = field(default_factory=tuple)
