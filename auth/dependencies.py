"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The session token is read from exactly ONE place, chosen per deployment by
Settings.token_transport:
  cookie -- "access_token" httpOnly cookie, set by POST /signup and /login.
  header -- Authorization: Bearer <token>, for non-browser clients.

get_current_user() is the single enforcement point for "the caller is who
they claim". It returns the resolved User, which FastAPI passes to the route
as a parameter. Handlers never read identity from the request body and
nothing is written onto the request object.

Layer rule: no imports from api/ or events/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import User
from auth.tokens import COOKIE_NAME, uses_header_transport, verify_access_token
from core.errors import ExpiredToken, InvalidToken, Unauthenticated

logger = logging.getLogger("cybercalendar.auth")


def extract_token(request: Request) -> str | None:
    """Return the raw session token from the configured transport, or None."""
    if uses_header_transport():
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            return auth_header[7:].strip() or None
        return None
    return request.cookies.get(COOKIE_NAME) or None


def get_current_user(request: Request) -> User:
    """Require a valid session. Raises Unauthenticated (HTTP 401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/events")
        def route(current_user: User = Depends(get_current_user)): ...

    The token's subject is resolved against the user store, so a token for an
    id that no longer exists is rejected like any other bad token.
    """
    token = extract_token(request)
    if token is None:
        raise Unauthenticated()

    try:
        user_id = verify_access_token(token)
    except ExpiredToken:
        logger.info("Rejected expired session token on %s", request.url.path)
        raise Unauthenticated("Session expired.") from None
    except InvalidToken:
        logger.warning("Rejected invalid session token on %s", request.url.path)
        raise Unauthenticated("Invalid session token.") from None

    user = request.app.state.user_store.get_by_id(user_id)
    if user is None:
        logger.warning("Session token subject %d has no user record", user_id)
        raise Unauthenticated("Invalid session token.")
    return user
