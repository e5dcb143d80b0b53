"""
tests/conftest.py -- Shared test fixtures for CyberCalendar integration tests.

This module provides:
  - stores: isolated UserStore + EventStore on a fresh in-memory database
  - client: TestClient wired to those stores through a patched lifespan
  - signup: helper fixture that registers a user and returns its session token
  - session_headers: builds the Cookie header that carries a session token
  - default_password: a password that satisfies the signup policy

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. Each test gets its own uuid-named database, so no state leaks
between tests.

The environment must be set before any app import: get_settings() is cached
on first call and several modules read it at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("TOKEN_TRANSPORT", "cookie")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.store import UserStore
from events.store import EventStore

DEFAULT_PASSWORD = "LongPass1"


def _session_headers(token: str) -> dict[str, str]:
    return {"Cookie": f"access_token={token}"}


def _patch_lifespan(user_store: UserStore, event_store: EventStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.event_store = event_store
        yield

    return test_lifespan


@pytest.fixture
def default_password() -> str:
    return DEFAULT_PASSWORD


@pytest.fixture
def session_headers() -> Callable[[str], dict[str, str]]:
    """Return a function that presents a token as the session cookie."""
    return _session_headers


@pytest.fixture
def db_url() -> str:
    return f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def stores(db_url: str) -> Generator[tuple[UserStore, EventStore], None, None]:
    user_store = UserStore(db_url)
    event_store = EventStore(db_url)
    yield user_store, event_store
    event_store.close()
    user_store.close()


@pytest.fixture
def client(stores: tuple[UserStore, EventStore]) -> Generator[TestClient, None, None]:
    """TestClient over the real app with isolated stores.

    The client's cookie jar is NOT relied on: helpers clear it and tests pass
    the session explicitly via session_headers(), so which user a request
    acts as is always visible in the test body.
    """
    app.router.lifespan_context = _patch_lifespan(*stores)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def signup(client: TestClient) -> Callable[..., str]:
    """Return a function that signs a user up and returns the issued token."""

    def _signup(username: str, password: str = DEFAULT_PASSWORD) -> str:
        resp = client.post("/signup", json={"username": username, "password": password})
        assert resp.status_code == 201, f"signup failed: {resp.status_code} {resp.text}"
        token = resp.cookies["access_token"]
        client.cookies.clear()
        return token

    return _signup
