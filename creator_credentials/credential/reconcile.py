"""Status reconciliation engine.

Merges the locally stored credential record with the live verification
outcome into a single DisplayStatus. The two reads are independent and run
concurrently; the engine holds no state between calls.

Precedence (record present?, live outcome) -> display:

    yes, Compliant        -> verified
    yes, Expired          -> expired
    yes, error            -> issued      (fall back to local record)
    yes, any other        -> issued
    no,  error            -> error       (an outage is not "no credential")
    no,  any other        -> not_issued

The stored record's local verification tag is never consulted: only a live
Compliant attestation yields ``verified``.

``reconcile`` never raises for downstream failures. Cancelling the calling
task cancels both outstanding reads.
"""

import asyncio
import logging
from typing import Optional, Protocol

from creator_credentials.credential.models import (
    DisplayStatus,
    ReconciliationResult,
    StoredCredentialRecord,
    VerificationOutcome,
)
from creator_credentials.credential.verification import VerificationCapability, verify_with
from creator_credentials.exceptions import ConfigurationError, TokenSigningError
from creator_credentials.tokens.issuer import TokenIssuer, TokenOperation

log = logging.getLogger(__name__)

_DISPLAY_FOR_ISSUED: dict[VerificationOutcome, DisplayStatus] = {
    VerificationOutcome.COMPLIANT: DisplayStatus.VERIFIED,
    VerificationOutcome.EXPIRED: DisplayStatus.EXPIRED,
}


class RecordLookup(Protocol):
    """Read side of the metadata store, as used here."""

    async def get(self, holder_id: str) -> Optional[StoredCredentialRecord]:
        ...


def derive_display_status(record_present: bool, outcome: VerificationOutcome) -> DisplayStatus:
    """Apply the precedence table."""
    if record_present:
        return _DISPLAY_FOR_ISSUED.get(outcome, DisplayStatus.ISSUED)
    if outcome is VerificationOutcome.ERROR:
        return DisplayStatus.ERROR
    return DisplayStatus.NOT_ISSUED


class StatusReconciler:
    """Reconciles one holder at a time; safe to share across requests.

    Args:
        store: Source of stored credential records.
        verifier: Injected verification capability (None = unavailable).
        token_issuer: Mints the verification token for each live check.
        program_id: Verification program / schema identifier.
        verification_timeout: Overall deadline for the live check, seconds.
    """

    def __init__(
        self,
        store: RecordLookup,
        verifier: Optional[VerificationCapability],
        token_issuer: TokenIssuer,
        program_id: Optional[str],
        verification_timeout: Optional[float] = None,
    ):
        self._store = store
        self._verifier = verifier
        self._tokens = token_issuer
        self._program_id = program_id
        self._verification_timeout = verification_timeout

    async def _fetch_record(
        self, holder_id: str, errors: list[str]
    ) -> Optional[StoredCredentialRecord]:
        try:
            return await self._store.get(holder_id)
        except Exception as e:
            log.warning(f"Stored record lookup failed for {holder_id[:10]}...: {e}")
            errors.append(f"store: {type(e).__name__}")
            return None

    async def _fetch_outcome(self, holder_id: str, errors: list[str]) -> VerificationOutcome:
        try:
            token = self._tokens.mint(holder_id, TokenOperation.VERIFICATION).token
        except (ConfigurationError, TokenSigningError) as e:
            # Fatal for issuance; for live status it degrades like any outage
            log.error(f"Cannot mint verification token: {e}")
            errors.append(f"token: {type(e).__name__}")
            return VerificationOutcome.ERROR

        outcome = await verify_with(
            self._verifier,
            holder_id,
            token,
            self._program_id,
            timeout=self._verification_timeout,
        )
        if outcome is VerificationOutcome.ERROR:
            errors.append("verification: error")
        return outcome

    async def reconcile(self, holder_id: str) -> ReconciliationResult:
        """Reconcile stored metadata with live status for one holder."""
        if not holder_id:
            return ReconciliationResult(
                holder_id="",
                stored_record=None,
                verification=None,
                display=DisplayStatus.ERROR,
                errors=("missing holder id",),
            )

        errors: list[str] = []
        try:
            record, outcome = await asyncio.gather(
                self._fetch_record(holder_id, errors),
                self._fetch_outcome(holder_id, errors),
            )
            display = derive_display_status(record is not None, outcome)
        except Exception as e:
            log.exception(f"Reconciliation failed for {holder_id[:10]}...")
            return ReconciliationResult(
                holder_id=holder_id,
                stored_record=None,
                verification=None,
                display=DisplayStatus.ERROR,
                errors=(*errors, f"reconcile: {type(e).__name__}"),
            )

        log.info(
            f"Reconciled {holder_id[:10]}...: record={record is not None} "
            f"live={outcome.value} display={display.value}"
        )
        return ReconciliationResult(
            holder_id=holder_id,
            stored_record=record,
            verification=outcome,
            display=display,
            errors=tuple(errors),
        )


# Global reconciler instance
_status_reconciler: StatusReconciler | None = None


def get_status_reconciler() -> StatusReconciler:
    """Get the global reconciler, wired from configuration."""
    global _status_reconciler

    if _status_reconciler is None:
        from creator_credentials.config import VERIFICATION_PROGRAM_ID, VERIFICATION_TIMEOUT_SECONDS
        from creator_credentials.credential.verification import get_verification_client
        from creator_credentials.db.store import get_metadata_store
        from creator_credentials.tokens.issuer import get_token_issuer

        _status_reconciler = StatusReconciler(
            store=get_metadata_store(),
            verifier=get_verification_client(),
            token_issuer=get_token_issuer(),
            program_id=VERIFICATION_PROGRAM_ID,
            verification_timeout=VERIFICATION_TIMEOUT_SECONDS,
        )

    return _status_reconciler


def reset_status_reconciler() -> None:
    """Reset the global reconciler (for testing)."""
    global _status_reconciler
    _status_reconciler = None
