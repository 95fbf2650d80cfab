"""Creator credential issuance.

Issuing is: gate the subject, mint an issuance token, build the W3C
verifiable-credential document, check its structure. The document is
returned to the caller for signing by the wallet provider; nothing is
persisted here. The profile save that follows must present the credential
id together with the same subject.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from creator_credentials.credential import gate
from creator_credentials.credential.gate import IssuanceClearance, SubjectInput
from creator_credentials.exceptions import CredentialBuildError
from creator_credentials.tokens.issuer import TokenIssuer, TokenOperation

log = logging.getLogger(__name__)

CREDENTIAL_TYPES: tuple[str, ...] = ("VerifiableCredential", "CreatorCredential")
SCHEMA_VALIDATOR = "JsonSchemaValidator2018"


@dataclass(frozen=True)
class IssuedCredential:
    credential: dict[str, Any]
    auth_token: str
    program_id: Optional[str]
    schema_id: Optional[str]

    @property
    def credential_id(self) -> str:
        return self.credential["id"]


def credential_identifier(holder_id: str, now: float) -> str:
    """``creator-<unix ms>-<last 6 chars of holder id>``."""
    return f"creator-{int(now * 1000)}-{holder_id[-6:]}"


def check_credential_structure(credential: dict[str, Any], holder_id: str) -> None:
    """Raise CredentialBuildError unless the document is well formed."""
    problems = []
    if not credential.get("id"):
        problems.append("id")
    if not credential.get("@context"):
        problems.append("@context")
    if list(credential.get("type") or ()) != list(CREDENTIAL_TYPES):
        problems.append("type")
    if not (credential.get("issuer") or {}).get("id"):
        problems.append("issuer.id")
    if (credential.get("credentialSubject") or {}).get("id") != holder_id:
        problems.append("credentialSubject.id")
    if problems:
        raise CredentialBuildError(
            f"Credential issuance failed - invalid credential generated: {', '.join(problems)}"
        )


class CredentialIssuanceService:
    """Builds creator credentials for holders who pass the issuance gate."""

    def __init__(
        self,
        token_issuer: TokenIssuer,
        issuer_did: Optional[str],
        schema_id: Optional[str],
        contexts: list[str],
        token_ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self._tokens = token_issuer
        self._issuer_did = issuer_did
        self._schema_id = schema_id
        self._contexts = list(contexts)
        self._token_ttl = token_ttl_seconds
        self._clock = clock

    def build_credential(self, clearance: IssuanceClearance, now: float) -> dict[str, Any]:
        holder_id = clearance.holder_id
        return {
            "@context": list(self._contexts),
            "id": credential_identifier(holder_id, now),
            "type": list(CREDENTIAL_TYPES),
            "issuer": {"id": self._issuer_did},
            "issuanceDate": datetime.fromtimestamp(now, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "credentialSubject": clearance.subject.to_claims(holder_id),
            "credentialSchema": {"id": self._schema_id, "type": SCHEMA_VALIDATOR},
        }

    def issue(self, holder_id: str, subject: SubjectInput) -> IssuedCredential:
        """Issue a creator credential document.

        Raises:
            IssuanceRejected: If the subject fails the gate.
            TokenConfigurationError: If the signing configuration is unusable.
            TokenSigningError: If the token cannot be signed.
            CredentialBuildError: If the generated document is malformed.
        """
        clearance = gate.require_valid(holder_id, subject)
        token = self._tokens.mint(holder_id, TokenOperation.ISSUANCE, self._token_ttl)

        credential = self.build_credential(clearance, self._clock())
        check_credential_structure(credential, holder_id)

        log.info(f"Issued creator credential {credential['id']} for {holder_id[:10]}...")
        return IssuedCredential(
            credential=credential,
            auth_token=token.token,
            program_id=self._schema_id,
            schema_id=self._schema_id,
        )


# Global issuance service instance
_issuance_service: CredentialIssuanceService | None = None


def get_issuance_service() -> CredentialIssuanceService:
    """Get the global issuance service, built from configuration."""
    global _issuance_service

    if _issuance_service is None:
        from creator_credentials.config import (
            CREATOR_SCHEMA_ID,
            CREDENTIAL_CONTEXTS,
            ISSUER_DID,
            TOKEN_TTL_SECONDS,
        )
        from creator_credentials.tokens.issuer import get_token_issuer

        _issuance_service = CredentialIssuanceService(
            token_issuer=get_token_issuer(),
            issuer_did=ISSUER_DID,
            schema_id=CREATOR_SCHEMA_ID,
            contexts=CREDENTIAL_CONTEXTS,
            token_ttl_seconds=TOKEN_TTL_SECONDS,
        )

    return _issuance_service


def reset_issuance_service() -> None:
    """Reset the global issuance service (for testing)."""
    global _issuance_service
    _issuance_service = None
