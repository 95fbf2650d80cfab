"""Creator credential domain: state model, issuance gate, reconciliation."""

from creator_credentials.credential.models import (
    CredentialSubject,
    DisplayStatus,
    LocalVerificationTag,
    ReconciliationResult,
    StoredCredentialRecord,
    VerificationOutcome,
)

__all__ = [
    "CredentialSubject",
    "DisplayStatus",
    "LocalVerificationTag",
    "ReconciliationResult",
    "StoredCredentialRecord",
    "VerificationOutcome",
]
