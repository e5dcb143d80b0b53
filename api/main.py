"""
api/main.py -- FastAPI application entry point for CyberCalendar.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- exact allowed origins, credentials (cookies) allowed
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan opens both stores on startup and closes them on shutdown. Handlers
reach them through app.state; nothing holds a module-level connection.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.events import router as events_router
from auth.store import UserStore
from core.config import get_settings
from core.errors import CalendarError, ValidationError
from events.store import EventStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("cybercalendar.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and close them on shutdown.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Both stores point at the same DATABASE_URL.
    """
    logger.info("CyberCalendar API starting up (token transport: %s)", _settings.token_transport)
    app.state.user_store = UserStore(_settings.database_url)
    app.state.event_store = EventStore(_settings.database_url)
    logger.info("Stores initialized")

    yield

    app.state.event_store.close()
    app.state.user_store.close()
    logger.info("CyberCalendar API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="CyberCalendar API",
    description="Personal calendar: per-user, date-tagged events behind cookie sessions.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_credentials=True,  # the session cookie must cross origins to the frontend
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(events_router, tags=["Events"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse body ({code, message}) so clients
# can parse errors uniformly without inspecting status codes first.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=message).model_dump(),
    )


@app.exception_handler(CalendarError)
async def calendar_error_handler(request: Request, exc: CalendarError) -> JSONResponse:
    """Render any domain error with its own status, code, and message."""
    return _error(exc.status_code, exc.code, exc.message)


# Error types raised by the request models in api/models.py. Their messages
# are complete sentences and are shown as-is.
_CUSTOM_ERROR_TYPES = (
    "username_too_short",
    "password_policy",
    "password_too_long",
    "empty_field",
    "title_too_short",
    "invalid_date",
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the first validation failure as the message.

    Policy validators raise PydanticCustomError, whose msg is the policy text
    itself. Built-in failures (missing field, wrong type) are prefixed with
    the field name so the client knows which input to fix.
    """
    errors = exc.errors()
    if not errors:
        return _error(ValidationError.status_code, ValidationError.code, ValidationError.message)
    first = errors[0]
    message = str(first.get("msg", ValidationError.message))
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if field and not first.get("type", "").startswith(_CUSTOM_ERROR_TYPES):
        message = f"{field}: {message}"
    return _error(ValidationError.status_code, ValidationError.code, message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded, with Retry-After."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404, 405, ...)."""
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    db_ok = request.app.state.user_store.ping() and request.app.state.event_store.ping()
    return HealthResponse(
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
