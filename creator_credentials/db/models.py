"""SQLAlchemy ORM models for creator credential metadata."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class CreatorCredentialRow(Base):
    """Issuance metadata for one holder.

    Rows are created on the first successful issuance and updated afterwards;
    they are never deleted. ``credential_id`` is set exactly once.
    ``verification_tag`` is local bookkeeping only.
    """

    __tablename__ = "creator_credentials"

    holder_id = Column(String(128), primary_key=True)  # wallet address
    credential_id = Column(String(128), nullable=True, unique=True)
    verification_tag = Column(String(16), default="pending", nullable=False)
    username = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    display_preference = Column(String(16), nullable=True)  # 'username' | 'realname'
    about = Column(Text, nullable=True)
    content_type = Column(String(16), nullable=True)  # video | audio | image | mixed
    supported_ages = Column(JSON, nullable=True)  # list of age groups
    image_cid = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<CreatorCredentialRow(holder_id={self.holder_id!r}, "
            f"credential_id={self.credential_id!r}, tag={self.verification_tag!r})>"
        )
