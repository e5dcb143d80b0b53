"""
auth/models.py -- Domain dataclass for the authenticated identity.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in events/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or events/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    username is immutable after signup (there is no rename endpoint).
    hashed_password is the bcrypt hash; the plaintext is never stored.
    id is None before the record is written to the database.
    """

    username: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
