"""
events/models.py -- Domain dataclass for calendar events.

Pure data container with zero logic. Date normalization lives in
events/dates.py and persistence in events/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Event:
    """A date-tagged entry on one user's calendar.

    owner_id is set once from the authenticated session and never reassigned.
    date is always the canonical YYYY-MM-DD calendar date -- no time of day,
    no timezone.

    id is None before the record is written to the database.
    """

    owner_id: int
    title: str
    date: str  # YYYY-MM-DD
    description: str = ""
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
