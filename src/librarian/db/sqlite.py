"""SQLite database operations.

Handles database connection, session management and per-item locking.
File databases start every transaction with BEGIN IMMEDIATE so separate
Database objects and processes on one file also serialize their writes.
"""

import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     LIBRARIAN_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "LIBRARIAN_DB_PATH",
                str(Path.home() / ".librarian" / "library.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
            self._begin_immediate()
        # Objects handed back to callers are detached, so keep their loaded state
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        self._locks_guard = threading.Lock()
        self._item_locks: dict[str, threading.RLock] = {}

    def _begin_immediate(self) -> None:
        """Take the write lock on the file when each transaction begins.

        SQLite ignores SELECT ... FOR UPDATE, so another Database or process
        on the same file could read an item's loans while this one decides.
        With BEGIN IMMEDIATE it waits at BEGIN until this transaction ends.
        """

        @event.listens_for(self.engine, "connect")
        def _disable_driver_begin(dbapi_connection, connection_record):
            # pysqlite would otherwise emit its own deferred BEGIN
            dbapi_connection.isolation_level = None

        @event.listens_for(self.engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import feature models to register them with Base
        from ..catalog.models import Item, Member  # noqa: F401
        from ..lending.models import Loan, LoanRenewal  # noqa: F401
        from ..fines.models import Fine  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def item_lock(self, item_id: str) -> Generator[None, None, None]:
        """Serialize schedule decisions for one item.

        Holds a re-entrant lock for the item while the caller reads the
        item's loans, decides, and commits. Open the session inside the
        lock so the commit happens before the lock is released.
        """
        with self._locks_guard:
            lock = self._item_locks.setdefault(str(item_id), threading.RLock())
        with lock:
            yield


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
