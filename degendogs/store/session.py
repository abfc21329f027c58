"""Database engine and session management for the holder board.

This module provides:
- create_db_engine(): engine configured for SQLite or a server database
- make_session_factory(): sessionmaker used by Board
- init_database(): idempotent table creation

SQLite runs every transaction as BEGIN IMMEDIATE so the vote
check-then-insert is serialized against other writers; server databases
rely on the votes primary key plus atomic counter UPDATEs. An in-memory
SQLite database lives on one shared connection, so sessions on it are
serialized with connection_lock().
"""

import logging
import threading
from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from degendogs.core.config import DATABASE_URL

log = logging.getLogger(__name__)


def create_db_engine(url: Optional[str] = None) -> Engine:
    """Create an engine for `url` (defaults to DATABASE_URL)."""
    url = url or DATABASE_URL

    if url.startswith("sqlite"):
        engine_kwargs = {
            "echo": False,
            "connect_args": {"check_same_thread": False},
        }
        if url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases exist per connection; share one.
            engine_kwargs["poolclass"] = StaticPool
        else:
            db_path = url.replace("sqlite:///", "")
            if db_path:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        log.info("Using SQLite database (local development mode)")
    else:
        engine_kwargs = {
            "echo": False,
            "pool_pre_ping": True,      # Verify connections before use
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": 1800,
        }
        log.info("Using server database")

    engine = create_engine(url, **engine_kwargs)

    if url.startswith("sqlite"):
        _configure_sqlite(engine)

    return engine


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Configure SQLite connections.

        - isolation_level=None: let the begin hook below own BEGIN
        - foreign_keys=ON: Enforce referential integrity
        - busy_timeout=5000: Wait up to 5s for locks
        """
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory; objects stay readable after commit."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


def init_database(engine: Engine) -> None:
    """Create all tables (CREATE IF NOT EXISTS)."""
    from degendogs.store.models import Base

    Base.metadata.create_all(bind=engine)
    log.info("Database tables created successfully")


def connection_lock(engine: Optional[Engine]) -> ContextManager:
    """Lock for serializing sessions on `engine`; owned by the caller.

    A StaticPool engine hands the same DBAPI connection to every thread, so
    one thread's BEGIN/ROLLBACK would land inside another's transaction.
    Such engines get a re-entrant lock; pooled engines need none.
    """
    if engine is None or not isinstance(engine.pool, StaticPool):
        return nullcontext()
    return threading.RLock()
