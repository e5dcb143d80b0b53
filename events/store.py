"""
events/store.py -- SQLAlchemy-backed persistence layer for calendar events.

Uses SQLAlchemy Core (not ORM) so the dataclass in events/models.py remains
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. EventStore is the repository;
_row_to_event is the mapper. Route handlers never touch SQL directly.

Ownership: every read is filtered by owner_id. There is deliberately no
"get event by id" or "list all events" method -- a query that is not scoped
to an owner cannot be written against this store.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = EventStore("sqlite:///cybercalendar.db")
    event = store.insert(owner_id=1, title="Dentist", description="", date="2024-03-15")
    events = store.list_by_owner(1)
    store.close()
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, select

from core.db import create_store_engine, storage_errors
from core.errors import StorageUnavailable
from events.models import Event

logger = logging.getLogger("cybercalendar.events")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_events = Table(
    "events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("date", String(10), nullable=False),  # YYYY-MM-DD
    Column("created_at", String(32), nullable=False),
    Index("ix_events_owner_date", "owner_id", "date"),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class EventStore:
    def __init__(self, db_url: str) -> None:
        self.engine = create_store_engine(db_url)
        with storage_errors():
            metadata.create_all(self.engine)

    def insert(self, owner_id: int, title: str, description: str, date: str) -> Event:
        """Append an event for owner_id and return it with its assigned id.

        date must already be canonical (events.dates.normalize_date). The
        owner is trusted as-is: it comes from the Auth Gate, which has already
        resolved it to an existing user.

        The write is committed before this returns, so an immediate
        list_by_owner() from the same client sees it.
        """
        created_at = _now_iso()
        with storage_errors(), self.engine.connect() as conn:
            result = conn.execute(
                _events.insert().values(
                    owner_id=owner_id,
                    title=title,
                    description=description,
                    date=date,
                    created_at=created_at,
                )
            )
            conn.commit()
        event_id = result.inserted_primary_key[0]
        logger.debug("Inserted event %d for owner %d on %s", event_id, owner_id, date)
        return Event(
            id=event_id,
            owner_id=owner_id,
            title=title,
            description=description,
            date=date,
            created_at=created_at,
        )

    def list_by_owner(self, owner_id: int) -> list[Event]:
        """Return every event owned by owner_id, ascending by date.

        Events on the same date keep insertion order (id ascending).
        """
        with storage_errors(), self.engine.connect() as conn:
            rows = conn.execute(
                select(_events).where(_events.c.owner_id == owner_id).order_by(_events.c.date, _events.c.id)
            ).fetchall()
        return [_row_to_event(r) for r in rows]

    def ping(self) -> bool:
        try:
            with storage_errors(), self.engine.connect() as conn:
                conn.execute(select(1))
        except StorageUnavailable:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_event(row) -> Event:
    return Event(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        date=row.date,
        created_at=row.created_at,
    )
