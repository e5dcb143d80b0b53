"""
api/routes/auth.py -- Account and session REST endpoints.

Routes:
  POST /signup  -- create account; issues session token
  POST /login   -- password login; issues session token
  POST /logout  -- clears the session cookie
  GET  /me      -- current user info (requires auth)

Security:
  POST /login and POST /signup are rate-limited per IP (LOGIN_RATE_LIMIT,
  SIGNUP_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Login failures always raise the same InvalidCredentials, so unknown user
  and wrong password produce byte-identical responses.
  Cache-Control: no-store on every response that carries a token.

Logout is client-side only. Tokens are stateless and nothing is recorded on
the server, so a token copied before logout keeps working until its exp.

The signup and login handlers are plain `def` so FastAPI runs them in its
thread pool; bcrypt's deliberate slowness never blocks the event loop.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, MeResponse, MessageResponse, SignupRequest
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    authenticate_user,
    clear_auth_cookie,
    create_access_token,
    hash_password,
    set_auth_cookie,
    uses_header_transport,
)
from core.config import get_settings
from core.errors import DuplicateUsername, InvalidCredentials

logger = logging.getLogger("cybercalendar.auth")

_settings = get_settings()

# Auth policy:
# - POST /signup: public -- creates the account it then authenticates
# - POST /login:  public -- login endpoint must be unauthenticated
# - POST /logout: public -- clearing a cookie needs no prior auth
# - GET  /me:     requires auth (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_settings.signup_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/signup", response_model=AuthResponse, status_code=201)
def signup(request: Request, body: SignupRequest) -> JSONResponse:
    """Create an account and start a session for it.

    The lookup below only produces a friendlier fast path. The UNIQUE
    constraint in UserStore.create_user() is what actually rejects a
    duplicate, including one inserted by a concurrent request between the
    lookup and the insert.
    """
    user_store: UserStore = request.app.state.user_store
    if user_store.get_by_username(body.username) is not None:
        raise DuplicateUsername()

    user = user_store.create_user(body.username, hash_password(body.password))
    logger.info("Account created: %s (id=%d)", user.username, user.id)
    return _session_response(user, status_code=201)


@limiter.limit(_settings.login_rate_limit)  # brute-force mitigation
@router.post("/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password and start a session."""
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password)
    if user is None:
        logger.warning(
            "Failed login for %r from %s",
            body.username,
            request.client.host if request.client else "unknown",
        )
        raise InvalidCredentials()
    return _session_response(user, status_code=200)


@router.post("/logout", response_model=MessageResponse)
async def logout() -> JSONResponse:
    """Clear the session cookie. The token itself stays valid until it expires."""
    resp = JSONResponse(content=MessageResponse(message="Logged out").model_dump())
    clear_auth_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(id=current_user.id, username=current_user.username)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session_response(user: User, status_code: int) -> JSONResponse:
    """Issue a token for user and attach it to the configured transport.

    Cookie transport: token goes in the httpOnly cookie only.
    Header transport: token goes in the body, since the client must store it
    and send it back as Authorization: Bearer.
    """
    token = create_access_token(user.id)
    header_transport = uses_header_transport()
    if header_transport:
        body = AuthResponse(
            username=user.username,
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
        )
    else:
        body = AuthResponse(username=user.username)

    resp = JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))
    if not header_transport:
        set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp
