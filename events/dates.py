"""
events/dates.py -- Calendar-date normalization for event input.

Clients send dates in whatever shape their widget produces: a bare
YYYY-MM-DD, a full ISO 8601 timestamp with an offset, a US-style
MM/DD/YYYY, or the output of JavaScript's Date.prototype.toString().
normalize_date() reduces all of them to the canonical YYYY-MM-DD string.

The year, month and day are always taken exactly as the client wrote them.
Nothing is ever converted to UTC first: "2024-03-15T23:30:00-05:00" is the
evening of March 15 for the user who picked it, even though the same instant
is already March 16 in UTC. Shifting it would move the event to the wrong
square on that user's calendar.
"""

from __future__ import annotations

import re
from datetime import date, datetime

# "Fri Mar 15 2024 23:30:00 GMT-0500 (Eastern Standard Time)" (toString)
# "Fri Mar 15 2024"                                           (toDateString)
_JS_DATE_STRING = re.compile(r"^[A-Za-z]{3},? ([A-Za-z]{3}) (\d{1,2}) (\d{4})\b")

# "Fri, 15 Mar 2024 04:30:00 GMT" (toUTCString / RFC 7231)
_HTTP_DATE_STRING = re.compile(r"^[A-Za-z]{3}, (\d{1,2}) ([A-Za-z]{3}) (\d{4})\b")

# Whole-string formats tried in order after ISO 8601 parsing fails.
_FORMATS = (
    "%m/%d/%Y",  # 03/15/2024
    "%Y/%m/%d",  # 2024/03/15
    "%B %d, %Y",  # March 15, 2024
    "%b %d, %Y",  # Mar 15, 2024
    "%B %d %Y",  # March 15 2024
    "%b %d %Y",  # Mar 15 2024
    "%d %B %Y",  # 15 March 2024
    "%d %b %Y",  # 15 Mar 2024
)


def _parse_iso(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    # datetime.fromisoformat() only learned the "Z" suffix in Python 3.11.
    candidate = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        # .date() keeps the wall-clock components; the offset is discarded,
        # never applied.
        return datetime.fromisoformat(candidate).date()
    except ValueError:
        return None


def _parse_js(value: str) -> date | None:
    match = _JS_DATE_STRING.match(value)
    if match:
        month, day, year = match.groups()
        return datetime.strptime(f"{month} {day} {year}", "%b %d %Y").date()
    match = _HTTP_DATE_STRING.match(value)
    if match:
        day, month, year = match.groups()
        return datetime.strptime(f"{month} {day} {year}", "%b %d %Y").date()
    return None


def normalize_date(value: object) -> str:
    """Return value as a canonical YYYY-MM-DD calendar date string.

    Raises ValueError for non-string input, empty strings, impossible dates
    (2024-02-30) and anything not in a recognized format.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ValueError("Date must be a string.")

    text = value.strip()
    if not text:
        raise ValueError("Date is required.")

    parsed = _parse_iso(text)
    if parsed is None:
        try:
            parsed = _parse_js(text)
        except ValueError:
            parsed = None
    if parsed is None:
        for fmt in _FORMATS:
            try:
                parsed = datetime.strptime(text, fmt).date()
                break
            except ValueError:
                continue
    if parsed is None:
        raise ValueError(f"Unrecognized date: {text[:40]!r}")
    return parsed.isoformat()
