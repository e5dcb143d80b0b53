"""
auth/tokens.py -- Session token codec, password hashing, and cookie helpers.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       only the subject (user id), issued-at and expiry. Tokens are never
       stored server-side, so logout cannot revoke one -- a captured token
       stays valid until its exp claim passes.

  Passwords: bcrypt directly. Bcrypt is the right choice for low-entropy
       secrets because its cost factor makes brute-force expensive. The
       _DUMMY_HASH constant enables timing equalization in authenticate_user()
       so response time does not reveal whether a username exists.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup: dev mode (DEBUG=true) auto-generates a
       random key with a warning; production mode refuses to start without one.

Layer rule: no imports from api/ or events/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from core.config import get_settings
from core.errors import ExpiredToken, InvalidToken

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("cybercalendar.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

COOKIE_NAME = "access_token"


def uses_header_transport() -> bool:
    """True when this deployment carries the session token in Authorization: Bearer."""
    return _settings.token_transport == "header"


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt ignores everything past 72 bytes. SignupRequest rejects longer
    passwords, so every byte a user types is part of the hash.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A malformed stored hash raises
    ValueError inside bcrypt; that is a failed match, not a server error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("cybercalendar_timing_dummy")


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. The caller must answer
    both failures with the same response.
    """
    user = store.get_by_username(username)
    if user is None:
        # Do NOT return before running bcrypt.
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# JWT encode / verify
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, expire_seconds: int = 0) -> str:
    """Encode a signed JWT for user_id expiring TTL seconds from now.

    Args:
        user_id:        Numeric user ID, stored as the JWT subject claim.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (one hour).
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def verify_access_token(token: str) -> int:
    """Verify a JWT and return the user id it was issued for.

    Raises:
        ExpiredToken: signature is valid but exp is in the past.
        InvalidToken: bad signature, malformed token, or missing/non-numeric sub.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ExpiredToken("token expired") from exc
    except JWTError as exc:
        raise InvalidToken("token failed verification") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        raise InvalidToken("token subject missing or malformed")
    if "exp" not in payload:
        raise InvalidToken("token has no expiry")
    return int(subject)


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str) -> None:
    """Write the JWT access token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="strict": the browser never attaches the cookie to a request
        started from another site, which closes the cross-site POST route
        to /events.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the JWT expiry so both expire together.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=_settings.secure_cookies,
        max_age=_settings.token_expire_seconds,
    )


def clear_auth_cookie(response) -> None:
    """Expire the session cookie. Attributes must match set_auth_cookie() or browsers keep it."""
    response.delete_cookie(
        COOKIE_NAME,
        httponly=True,
        samesite="strict",
        secure=_settings.secure_cookies,
    )
