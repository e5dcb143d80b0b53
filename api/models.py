"""
API request and response models for CyberCalendar REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
events/models.py, which own the internal domain representation. Route
handlers map between the two.

Each request model is the single validation step for its endpoint: a route
either receives a fully validated instance or FastAPI raises
RequestValidationError, which api/main.py renders as a 400 ValidationError.
Policy failures raise PydanticCustomError so the client sees the policy
message verbatim rather than Pydantic's "Value error, ..." prefix.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from events.dates import normalize_date
from events.models import Event

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

USERNAME_MIN_LENGTH = 4
PASSWORD_MIN_LENGTH = 8
TITLE_MIN_LENGTH = 4

# bcrypt only looks at the first 72 bytes and bcrypt>=5 refuses longer input.
_PASSWORD_MAX_BYTES = 72

_HAS_UPPER = re.compile(r"[A-Z]")
_HAS_DIGIT = re.compile(r"[0-9]")

_PASSWORD_POLICY = (
    "Password must be at least 8 characters long, with at least one capital letter and one number."
)


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /signup."""

    username: str = Field(max_length=255)
    password: str

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        if len(value) < USERNAME_MIN_LENGTH:
            raise PydanticCustomError("username_too_short", "Username must be at least 4 characters long.")
        return value

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        """At least 8 characters, one uppercase letter, one digit."""
        if len(value) < PASSWORD_MIN_LENGTH or not _HAS_UPPER.search(value) or not _HAS_DIGIT.search(value):
            raise PydanticCustomError("password_policy", _PASSWORD_POLICY)
        if len(value.encode("utf-8")) > _PASSWORD_MAX_BYTES:
            raise PydanticCustomError("password_too_long", "Password must be at most 72 bytes long.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /login.

    Only presence and type are checked here. Running the signup policy on
    login would tell an attacker which guesses cannot possibly be valid.
    """

    username: str = Field(max_length=255)
    password: str = Field(max_length=255)

    @field_validator("username", "password")
    @classmethod
    def check_not_empty(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("empty_field", "Username and password are required.")
        return value


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Response for POST /signup and POST /login.

    access_token / token_type are only populated when the deployment uses
    header transport (TOKEN_TRANSPORT=header). With cookie transport the token
    travels in the httpOnly cookie alone and the body carries just username.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None


class MeResponse(BaseModel):
    """Response for GET /me."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str


class MessageResponse(BaseModel):
    """Plain acknowledgment, e.g. POST /logout."""

    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class EventCreate(BaseModel):
    """Request body for POST /events.

    date accepts any representation events.dates.normalize_date() understands
    and is stored as its canonical YYYY-MM-DD form.
    """

    title: str = Field(max_length=255)
    description: str = Field(max_length=2000)
    date: str

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        if len(value) < TITLE_MIN_LENGTH:
            raise PydanticCustomError("title_too_short", "Title must be at least 4 characters long.")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def normalize(cls, value: object) -> str:
        try:
            return normalize_date(value)
        except ValueError as exc:
            raise PydanticCustomError("invalid_date", "{reason}", {"reason": str(exc)}) from exc


class EventResponse(BaseModel):
    """One event as returned to its owner."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    date: str

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        """Build an EventResponse from an events.models.Event.

        owner_id is left out: the caller is always the owner.
        """
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            date=event.date,
        )


class EventCreatedResponse(BaseModel):
    """Response for POST /events."""

    model_config = ConfigDict(frozen=True)

    message: str = "Event added"
    event: EventResponse


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Error body returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
