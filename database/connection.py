"""
Database connection and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool
from contextlib import contextmanager
from typing import Generator, Optional

from database.models import Base
from core.logger import logger


class ConstraintViolation(Exception):
    """
    Raised when the store rejects a write because of an integrity constraint.

    ``kind`` is one of ``unique``, ``foreign_key``, ``not_null`` or ``other``;
    ``constraint`` is the constraint name when the driver reports it.
    """

    def __init__(self, kind: str, constraint: Optional[str] = None, detail: str = ""):
        self.kind = kind
        self.constraint = constraint
        self.detail = detail
        super().__init__(f"{kind} constraint violated ({constraint or 'unnamed'}): {detail}")

    @classmethod
    def from_integrity_error(cls, error: IntegrityError) -> "ConstraintViolation":
        """Classify an IntegrityError from psycopg2 (SQLSTATE) or sqlite3 (message)."""
        orig = error.orig
        detail = str(orig)
        pgcode = getattr(orig, "pgcode", None)
        diag = getattr(orig, "diag", None)
        constraint = getattr(diag, "constraint_name", None) if diag is not None else None

        if pgcode == "23505":
            kind = "unique"
        elif pgcode == "23503":
            kind = "foreign_key"
        elif pgcode == "23502":
            kind = "not_null"
        elif detail.startswith("UNIQUE constraint failed"):
            kind = "unique"
        elif detail.startswith("FOREIGN KEY constraint failed"):
            kind = "foreign_key"
        elif detail.startswith("NOT NULL constraint failed"):
            kind = "not_null"
        else:
            kind = "other"
        return cls(kind, constraint, detail)


def commit_or_raise(db: Session) -> None:
    """
    Commit the session, translating integrity failures into ConstraintViolation.
    The session is rolled back before the exception propagates.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConstraintViolation.from_integrity_error(e) from e


class Database:
    """
    Database connection manager.

    One instance owns the engine and its bounded connection pool. It is built
    once at startup (or by the caller, e.g. tests) and handed to request
    handlers through ``app.state``.
    """

    def __init__(self, database_url: str, pool_size: int = 10, max_overflow: int = 20):
        """
        Initialize database connection.

        Args:
            database_url: PostgreSQL (or SQLite) connection URL
            pool_size: Number of connections to maintain
            max_overflow: Maximum overflow connections
        """
        self.database_url = database_url
        engine_kwargs = {
            "poolclass": QueuePool,
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,  # Verify connections before using
            "echo": False,
        }
        if database_url.startswith("sqlite"):
            # Pooled connections are handed between threads by the ASGI server
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        logger.info(f"Database engine initialized: {database_url.split('@')[1] if '@' in database_url else 'local'}")

    def create_tables(self):
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created")

    def dispose(self):
        """Close all pooled connections."""
        self.engine.dispose()
        logger.info("Database connections closed")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get database session context manager.

        Usage:
            with db.get_session() as session:
                # Use session
                pass
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
