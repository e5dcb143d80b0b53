"""
core/db.py -- Engine construction and driver-error translation for the stores.

Both repositories (auth/store.py, events/store.py) build their engine here so
SQLite tuning lives in one place, and both wrap their connections in
storage_errors() so a dead database surfaces as StorageUnavailable rather
than a raw driver exception.

Layer rule: core/ is the kernel. No imports from api/, auth/, or events/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from core.errors import StorageUnavailable

logger = logging.getLogger("cybercalendar.db")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_store_engine(db_url: str) -> Engine:
    """Create an Engine for db_url with the SQLite settings the stores need.

    check_same_thread=False: FastAPI runs sync handlers in a thread pool, so
    a pooled SQLite connection is routinely used from a thread other than the
    one that opened it.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


@contextmanager
def storage_errors() -> Iterator[None]:
    """Translate connection-level driver failures into StorageUnavailable.

    Only OperationalError is translated: it is what SQLAlchemy raises for
    unreachable servers, locked or missing database files, and dropped
    connections. IntegrityError and programming errors pass through.
    """
    try:
        yield
    except OperationalError as exc:
        logger.error("Database operation failed: %s", exc.__class__.__name__)
        raise StorageUnavailable() from exc
