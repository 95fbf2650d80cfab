"""Database module: ORM models, sessions and the metadata store accessor."""

from creator_credentials.db.models import Base, CreatorCredentialRow
from creator_credentials.db.session import SessionLocal, build_engine, engine, get_db_session, init_database
from creator_credentials.db.store import MetadataStore, get_metadata_store, reset_metadata_store

__all__ = [
    "Base",
    "CreatorCredentialRow",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db_session",
    "init_database",
    "MetadataStore",
    "get_metadata_store",
    "reset_metadata_store",
]
