"""Metadata store accessor for creator credential records.

Owns persistence of StoredCredentialRecord, keyed by holder id. Reads and
writes are blocking SQLAlchemy calls, run in a worker thread so they do not
stall the event loop.

Storage-boundary rules, enforced here regardless of what the caller did:
- a record is only created together with a credential reference
- a credential reference is only accepted with an explicit id and an
  IssuanceClearance for the same holder that still passes the gate
- a recorded credential reference never changes
- fields not supplied to ``upsert`` are left unchanged
"""

import asyncio
import logging
import threading
from contextlib import nullcontext
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from creator_credentials.credential import gate
from creator_credentials.credential.gate import IssuanceClearance
from creator_credentials.credential.models import LocalVerificationTag, StoredCredentialRecord
from creator_credentials.db.models import CreatorCredentialRow
from creator_credentials.db.session import SessionLocal, get_db_session, uses_single_connection
from creator_credentials.exceptions import DuplicateCredentialReference, PersistenceRejected

log = logging.getLogger(__name__)

UPDATABLE_FIELDS: frozenset[str] = frozenset({
    "username",
    "display_name",
    "display_preference",
    "about",
    "content_type",
    "supported_ages",
    "image_cid",
    "verification_tag",
})


def _to_record(row: CreatorCredentialRow) -> StoredCredentialRecord:
    return StoredCredentialRecord(
        holder_id=row.holder_id,
        credential_id=row.credential_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        verification_tag=LocalVerificationTag(row.verification_tag),
        username=row.username,
        display_name=row.display_name,
        display_preference=row.display_preference,
        about=row.about,
        content_type=row.content_type,
        supported_ages=tuple(row.supported_ages or ()),
        image_cid=row.image_cid,
    )


def _check_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Drop unsupplied (None) values and reject unknown fields."""
    if "credential_id" in changes:
        raise PersistenceRejected(
            "credential_id must be passed explicitly, not as a field change"
        )
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise PersistenceRejected(f"Unknown record fields: {', '.join(sorted(unknown))}")

    applied = {k: v for k, v in changes.items() if v is not None}
    if "verification_tag" in applied:
        try:
            applied["verification_tag"] = LocalVerificationTag(applied["verification_tag"]).value
        except ValueError:
            raise PersistenceRejected(
                f"Invalid verification tag: {applied['verification_tag']!r}"
            )
    if "supported_ages" in applied:
        applied["supported_ages"] = list(applied["supported_ages"])
    return applied


def _check_clearance(
    holder_id: str,
    credential_id: Optional[str],
    clearance: Optional[IssuanceClearance],
) -> None:
    """Re-verify, at the storage boundary, that issuance was authorised."""
    if not credential_id or not str(credential_id).strip():
        raise PersistenceRejected("A valid credential reference is required")
    if not isinstance(clearance, IssuanceClearance) or clearance.holder_id != holder_id:
        raise PersistenceRejected(
            "Credential reference rejected: no issuance clearance for this holder"
        )
    result = gate.validate(clearance.holder_id, clearance.subject)
    if not result.ok:
        raise PersistenceRejected(
            f"Credential reference rejected: subject no longer valid ({result.reason})"
        )


class MetadataStore:
    """Read-by-key / upsert-by-key access to creator credential records."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory
        bind = session_factory.kw.get("bind")
        # One shared connection must not be driven from two worker threads.
        self._lock = threading.Lock() if bind is not None and uses_single_connection(bind) else None

    def _serialized(self):
        return self._lock if self._lock is not None else nullcontext()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_sync(self, holder_id: str) -> Optional[StoredCredentialRecord]:
        with self._serialized(), get_db_session(self._session_factory) as db:
            row = db.get(CreatorCredentialRow, holder_id)
            return _to_record(row) if row is not None else None

    async def get(self, holder_id: str) -> Optional[StoredCredentialRecord]:
        """Fetch the stored record for a holder, or None."""
        return await asyncio.to_thread(self.get_sync, holder_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert_sync(
        self,
        holder_id: str,
        changes: Mapping[str, Any] | None = None,
        *,
        credential_id: Optional[str] = None,
        clearance: Optional[IssuanceClearance] = None,
    ) -> StoredCredentialRecord:
        if not holder_id:
            raise PersistenceRejected("holder_id is required")
        applied = _check_changes(changes or {})

        try:
            with self._serialized(), get_db_session(self._session_factory) as db:
                row = db.get(CreatorCredentialRow, holder_id)
                if row is None:
                    row = self._create(db, holder_id, credential_id, clearance)
                elif credential_id is not None:
                    self._attach_reference(row, credential_id, clearance)

                for name, value in applied.items():
                    setattr(row, name, value)

                db.flush()
                record = _to_record(row)
        except IntegrityError as e:
            raise DuplicateCredentialReference(
                f"Credential reference {credential_id} is already recorded for another holder"
            ) from e

        log.info(
            f"Upserted credential record for {holder_id[:10]}... "
            f"fields={sorted(applied)} issued={record.is_issued}"
        )
        return record

    async def upsert(
        self,
        holder_id: str,
        changes: Mapping[str, Any] | None = None,
        *,
        credential_id: Optional[str] = None,
        clearance: Optional[IssuanceClearance] = None,
    ) -> StoredCredentialRecord:
        """Create or partially update a holder's record.

        Args:
            holder_id: Record key.
            changes: Field values to set; absent or None values are unchanged.
            credential_id: Credential reference to record (creation requires it).
            clearance: Gate clearance for ``holder_id``; required with credential_id.

        Raises:
            PersistenceRejected: On any storage-boundary rule violation.
            DuplicateCredentialReference: If the reference differs from the
                recorded one, or belongs to another holder.
        """
        return await asyncio.to_thread(
            self.upsert_sync,
            holder_id,
            changes,
            credential_id=credential_id,
            clearance=clearance,
        )

    @staticmethod
    def _create(
        db: Session,
        holder_id: str,
        credential_id: Optional[str],
        clearance: Optional[IssuanceClearance],
    ) -> CreatorCredentialRow:
        _check_clearance(holder_id, credential_id, clearance)
        row = CreatorCredentialRow(
            holder_id=holder_id,
            credential_id=credential_id,
            verification_tag=LocalVerificationTag.PENDING.value,
        )
        db.add(row)
        return row

    @staticmethod
    def _attach_reference(
        row: CreatorCredentialRow,
        credential_id: str,
        clearance: Optional[IssuanceClearance],
    ) -> None:
        if row.credential_id is not None and row.credential_id != credential_id:
            raise DuplicateCredentialReference(
                f"Holder {row.holder_id[:10]}... already has a credential reference"
            )
        _check_clearance(row.holder_id, credential_id, clearance)
        row.credential_id = credential_id


# Global store instance
_metadata_store: MetadataStore | None = None


def get_metadata_store() -> MetadataStore:
    """Get the global metadata store instance."""
    global _metadata_store

    if _metadata_store is None:
        _metadata_store = MetadataStore()

    return _metadata_store


def reset_metadata_store() -> None:
    """Reset the global metadata store (for testing)."""
    global _metadata_store
    _metadata_store = None
