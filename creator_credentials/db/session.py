"""Database engine and session management.

- engine: SQLAlchemy engine for the configured DATABASE_URL
- SessionLocal: session factory bound to that engine
- get_db_session(): context manager committing on success
- build_engine(): engine factory, also used by tests for in-memory databases
- uses_single_connection(): whether an engine's sessions share a connection
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from creator_credentials.config import DATABASE_URL

log = logging.getLogger(__name__)


def is_memory_sqlite(url: str) -> bool:
    """True for SQLite URLs whose database lives only in a connection."""
    if not url.startswith("sqlite"):
        return False
    path = url.split("://", 1)[-1].lstrip("/")
    return path in ("", ":memory:") or "mode=memory" in url


def uses_single_connection(target: Engine) -> bool:
    """True when every session of ``target`` shares one DBAPI connection."""
    return isinstance(target.pool, StaticPool)


def build_engine(url: str) -> Engine:
    """Create an engine with settings suited to the database type.

    In-memory SQLite gets a StaticPool, since the database disappears with
    its connection. Callers must serialize access to such an engine (see
    ``uses_single_connection``). File-backed SQLite gets the default pool,
    one connection per checkout. Other databases get a sized pool.
    """
    if url.startswith("sqlite"):
        if is_memory_sqlite(url):
            new_engine = create_engine(
                url,
                echo=False,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            new_engine = create_engine(
                url,
                echo=False,
                connect_args={"check_same_thread": False, "timeout": 5},
            )

        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        return new_engine

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=1800,
    )


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


@contextmanager
def get_db_session(factory: sessionmaker = SessionLocal) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    The session is committed on success and rolled back on exception.
    """
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_database(target: Engine = engine) -> None:
    """Create all tables (idempotent).

    For file-backed SQLite, also ensures the database directory exists.
    """
    from creator_credentials.db.models import Base

    url = str(target.url)
    log.info(f"Initializing database at {url.split('@')[-1] if '@' in url else url}")

    if url.startswith("sqlite:///"):
        db_path = url.replace("sqlite:///", "")
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    Base.metadata.create_all(bind=target)
    log.info("Database tables created successfully")
