"""Issuance gate for creator credentials.

No credential may be issued or persisted unless the holder and subject pass
these checks, in order, stopping at the first failing rule:

1. holder id and subject are both present
2. every mandatory field is present and non-empty (all missing names reported)
3. username is at least MIN_USERNAME_LENGTH characters after trimming
4. age is an integer of at least MINIMUM_AGE

The gate has no side effects. A passing result carries an IssuanceClearance
which the metadata store demands before it records a credential reference.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from creator_credentials.credential.models import CredentialSubject
from creator_credentials.exceptions import IssuanceRejected

log = logging.getLogger(__name__)

MANDATORY_FIELDS: tuple[str, ...] = ("username", "name", "age", "location", "creator")
MIN_USERNAME_LENGTH = 3
MINIMUM_AGE = 18

REASON_MISSING_DATA = "missing required data"
REASON_USERNAME_TOO_SHORT = "username too short"
REASON_INVALID_AGE = "invalid age"
REASON_UNDERAGE = "underage"

SubjectInput = Union[CredentialSubject, Mapping[str, Any], None]


@dataclass(frozen=True)
class IssuanceClearance:
    """Proof that a holder/subject pair passed the gate."""
    holder_id: str
    subject: CredentialSubject
    cleared_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class GateResult:
    """Ok (with clearance) or Rejected (with reason)."""
    ok: bool
    reason: Optional[str] = None
    fields: tuple[str, ...] = ()
    clearance: Optional[IssuanceClearance] = None

    @classmethod
    def rejected(cls, reason: str, fields: tuple[str, ...] = ()) -> "GateResult":
        return cls(ok=False, reason=reason, fields=fields)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def _coerce_subject(subject: SubjectInput) -> Optional[CredentialSubject]:
    if subject is None:
        return None
    if isinstance(subject, CredentialSubject):
        return subject
    if isinstance(subject, Mapping):
        return CredentialSubject.from_mapping(subject)
    return None


def missing_fields(subject: CredentialSubject) -> tuple[str, ...]:
    """Names of mandatory fields that are absent or empty."""
    return tuple(f for f in MANDATORY_FIELDS if _is_blank(getattr(subject, f)))


def validate(holder_id: Optional[str], subject: SubjectInput) -> GateResult:
    """Run the issuance gate.

    Args:
        holder_id: Wallet/account the credential is about.
        subject: Candidate claims, as a CredentialSubject or a plain mapping.

    Returns:
        GateResult; ``ok`` results carry an IssuanceClearance.
    """
    coerced = _coerce_subject(subject)
    if _is_blank(holder_id) or coerced is None:
        return GateResult.rejected(REASON_MISSING_DATA)

    missing = missing_fields(coerced)
    if missing:
        return GateResult.rejected(f"missing fields: {', '.join(missing)}", missing)

    username = coerced.username
    if not isinstance(username, str) or len(username.strip()) < MIN_USERNAME_LENGTH:
        return GateResult.rejected(REASON_USERNAME_TOO_SHORT, ("username",))

    age = coerced.age
    # bool is an int subclass; True must not pass as age 1
    if isinstance(age, bool) or not isinstance(age, int):
        return GateResult.rejected(REASON_INVALID_AGE, ("age",))
    if age < MINIMUM_AGE:
        return GateResult.rejected(REASON_UNDERAGE, ("age",))

    return GateResult(
        ok=True,
        clearance=IssuanceClearance(holder_id=holder_id, subject=coerced),
    )


def require_valid(holder_id: Optional[str], subject: SubjectInput) -> IssuanceClearance:
    """Raising form of :func:`validate`.

    Raises:
        IssuanceRejected: with the first blocking reason.
    """
    result = validate(holder_id, subject)
    if not result.ok:
        log.warning(
            f"Issuance blocked for {str(holder_id)[:10]}...: {result.reason}"
        )
        raise IssuanceRejected(result.reason, result.fields)
    return result.clearance
