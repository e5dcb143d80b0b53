"""
auth/store.py -- SQLAlchemy Core persistence layer for user credentials.

Pattern: Repository + Data Mapper (same as events/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Username uniqueness is a UNIQUE constraint on the column, not a
  read-then-insert check. Two concurrent signups for the same name both pass
  any prior SELECT; only the constraint guarantees that exactly one INSERT
  wins. create_user() translates the losing IntegrityError into
  DuplicateUsername.

Layer rule: no imports from api/ or events/. Import from core/ is allowed.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.db import create_store_engine, storage_errors
from core.errors import DuplicateUsername, StorageUnavailable

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///cybercalendar.db")
        user = store.create_user("alice", hash_password("LongPass1"))
        same = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = create_store_engine(db_url)
        with storage_errors():
            _metadata.create_all(self.engine)

    def create_user(self, username: str, hashed_password: str) -> User:
        """Insert a new user and return it with its assigned id.

        Raises DuplicateUsername if the username is already taken, whether by
        an earlier signup or by a concurrent one that committed first.
        """
        created_at = _now_iso()
        with storage_errors(), self.engine.connect() as conn:
            try:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        hashed_password=hashed_password,
                        created_at=created_at,
                    )
                )
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                raise DuplicateUsername() from exc
        return User(
            id=result.inserted_primary_key[0],
            username=username,
            hashed_password=hashed_password,
            created_at=created_at,
        )

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with storage_errors(), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with storage_errors(), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
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


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
