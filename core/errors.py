"""
core/errors.py -- Error taxonomy shared by every CyberCalendar layer.

Every failure a request can end in is one of these classes. Each carries the
HTTP status and machine-readable code it maps to, so api/main.py needs a
single exception handler to turn any of them into a {code, message} body.

All errors are terminal for the current request. Nothing in the app retries.

Layer rule: core/ is the kernel. No imports from api/, auth/, or events/.
"""

from __future__ import annotations


class CalendarError(Exception):
    """Base class for errors that are safe to show to the client."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(CalendarError):
    """Malformed, missing, or out-of-policy input."""

    status_code = 400
    code = "validation_error"
    message = "Request validation failed."


class DuplicateUsername(CalendarError):
    """The username is already taken (storage-level UNIQUE conflict)."""

    status_code = 400
    code = "duplicate_username"
    message = "Username already exists."


class InvalidCredentials(CalendarError):
    """Login failed. Deliberately says nothing about which field was wrong."""

    status_code = 400
    code = "invalid_credentials"
    message = "Invalid credentials."


class Unauthenticated(CalendarError):
    """No session token, or one that failed verification."""

    status_code = 401
    code = "unauthenticated"
    message = "Authentication required."


class StorageUnavailable(CalendarError):
    """The database could not be reached. Driver detail is never exposed."""

    status_code = 503
    code = "storage_unavailable"
    message = "The service is temporarily unavailable."


# ---------------------------------------------------------------------------
# Session token codec failures
#
# Raised by auth.tokens.verify_access_token(). The Auth Gate converts both to
# Unauthenticated, so these never reach the client directly.
# ---------------------------------------------------------------------------


class InvalidToken(Exception):
    """Signature mismatch or malformed token structure."""


class ExpiredToken(InvalidToken):
    """Token signature is valid but its exp claim is in the past."""
