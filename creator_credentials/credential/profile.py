"""Creator profile metadata: validation, display name and persistence.

A profile is saved alongside the credential reference it belongs to. Saving
re-runs the issuance gate on the credential subject so the metadata store
receives a fresh IssuanceClearance for the holder.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from creator_credentials.credential import gate
from creator_credentials.credential.gate import SubjectInput
from creator_credentials.credential.models import LocalVerificationTag, StoredCredentialRecord
from creator_credentials.exceptions import PersistenceRejected, ProfileRejected

log = logging.getLogger(__name__)

CONTENT_TYPES: tuple[str, ...] = ("video", "audio", "image", "mixed")
AGE_GROUPS: tuple[str, ...] = ("all-ages", "18+", "21+")
DISPLAY_PREFERENCES: tuple[str, ...] = ("username", "realname")

REQUIRED_PROFILE_FIELDS: tuple[str, ...] = (
    "about",
    "content_type",
    "supported_ages",
    "display_preference",
)


@dataclass(frozen=True)
class ProfileUpdate:
    """Profile metadata submitted by a creator."""
    about: Optional[str] = None
    content_type: Optional[str] = None
    supported_ages: tuple[str, ...] = field(default_factory=tuple)
    display_preference: Optional[str] = None
    image_cid: Optional[str] = None
    username: Optional[str] = None
    real_name: Optional[str] = None


def _is_empty(value) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return not value


def validate_profile(update: ProfileUpdate) -> None:
    """Check a profile update against the content policy.

    Raises:
        ProfileRejected: naming the missing fields or the offending values.
    """
    missing = tuple(
        name for name in REQUIRED_PROFILE_FIELDS if _is_empty(getattr(update, name))
    )
    if missing:
        raise ProfileRejected(f"missing fields: {', '.join(missing)}", missing)

    if update.content_type not in CONTENT_TYPES:
        raise ProfileRejected(
            f"invalid content type: {update.content_type}. "
            f"Must be one of: {', '.join(CONTENT_TYPES)}",
            ("content_type",),
        )

    invalid_ages = [age for age in update.supported_ages if age not in AGE_GROUPS]
    if invalid_ages:
        raise ProfileRejected(
            f"invalid age groups: {', '.join(map(str, invalid_ages))}. "
            f"Must be one of: {', '.join(AGE_GROUPS)}",
            ("supported_ages",),
        )

    if update.display_preference not in DISPLAY_PREFERENCES:
        raise ProfileRejected(
            f"invalid display preference: {update.display_preference}. "
            f"Must be one of: {', '.join(DISPLAY_PREFERENCES)}",
            ("display_preference",),
        )


def derive_display_name(
    preference: Optional[str],
    username: Optional[str],
    real_name: Optional[str],
    holder_id: str,
) -> str:
    if preference == "realname" and real_name:
        return real_name
    if username:
        return f"@{username}"
    return f"creator_{holder_id[:8]}"


class CreatorProfileService:
    """Validates and saves creator profiles through the metadata store."""

    def __init__(self, store):
        self._store = store

    async def save(
        self,
        holder_id: str,
        update: ProfileUpdate,
        credential_id: Optional[str],
        subject: SubjectInput,
    ) -> StoredCredentialRecord:
        """Save profile metadata together with its credential reference.

        Args:
            holder_id: Wallet address the profile belongs to.
            update: Profile metadata.
            credential_id: Reference of the credential issued to the holder.
            subject: Claims the credential was issued with; re-checked here.

        Raises:
            PersistenceRejected: If no credential reference is supplied, or
                the store refuses the write.
            ProfileRejected: If the metadata violates the content policy.
            IssuanceRejected: If the subject no longer passes the gate.
        """
        if not credential_id or not str(credential_id).strip():
            log.error(f"Profile save without credential reference for {str(holder_id)[:10]}...")
            raise PersistenceRejected(
                "Cannot save creator profile - a valid credential reference is required"
            )
        validate_profile(update)
        clearance = gate.require_valid(holder_id, subject)

        changes = {
            "about": update.about,
            "content_type": update.content_type,
            "supported_ages": list(update.supported_ages),
            "display_preference": update.display_preference,
            "display_name": derive_display_name(
                update.display_preference, update.username, update.real_name, holder_id
            ),
            "username": update.username,
            "image_cid": update.image_cid,
            "verification_tag": LocalVerificationTag.PENDING.value,
        }
        record = await self._store.upsert(
            holder_id,
            changes,
            credential_id=credential_id,
            clearance=clearance,
        )
        log.info(f"Saved creator profile for {holder_id[:10]}... display={record.display_name!r}")
        return record


# Global profile service instance
_profile_service: CreatorProfileService | None = None


def get_profile_service() -> CreatorProfileService:
    """Get the global profile service."""
    global _profile_service

    if _profile_service is None:
        from creator_credentials.db.store import get_metadata_store

        _profile_service = CreatorProfileService(get_metadata_store())

    return _profile_service


def reset_profile_service() -> None:
    """Reset the global profile service (for testing)."""
    global _profile_service
    _profile_service = None
