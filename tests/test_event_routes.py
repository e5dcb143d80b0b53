"""
tests/test_event_routes.py -- Integration tests for POST/GET /events.

Coverage:
  - Auth failures: 401 with no cookie, a tampered token, or an expired token
  - Add then list returns the new event exactly once (read-your-writes)
  - Per-user isolation: no user ever sees another user's events
  - Date normalization keeps the calendar date the user picked, including
    late-evening timestamps with a negative UTC offset
  - Validation: short titles, missing/unparseable dates, a missing description,
    non-string fields
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from core.config import get_settings


def _add(client: TestClient, headers: dict, title: str, date: str, description: str = "") -> dict:
    resp = client.post("/events", json={"title": title, "description": description, "date": date}, headers=headers)
    assert resp.status_code == 201, f"add failed: {resp.status_code} {resp.text}"
    return resp.json()


class TestEventAuth:
    def test_list_without_session_returns_401(self, client: TestClient) -> None:
        resp = client.get("/events")
        assert resp.status_code == 401
        body = resp.json()
        assert body["code"] == "unauthenticated"
        assert set(body) == {"code", "message"}, "no event data may leak into an auth failure"

    def test_add_without_session_returns_401(self, client: TestClient) -> None:
        resp = client.post("/events", json={"title": "Sneaky", "description": "", "date": "2024-03-15"})
        assert resp.status_code == 401

    def test_auth_checked_before_body_validation(self, client: TestClient) -> None:
        resp = client.post("/events", json={"title": "x"})
        assert resp.status_code == 401

    def test_tampered_token_rejected(self, client: TestClient, signup, session_headers) -> None:
        token = signup("mallory")
        header, payload, signature = token.split(".")
        forged = f"{header}.{payload}.{signature[::-1]}"
        resp = client.get("/events", headers=session_headers(forged))
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid session token."

    def test_garbage_token_rejected(self, client: TestClient, session_headers) -> None:
        resp = client.get("/events", headers=session_headers("not-a-jwt"))
        assert resp.status_code == 401

    def test_expired_token_rejected(self, client: TestClient, signup, stores, session_headers) -> None:
        signup("oscar")
        user = stores[0].get_by_username("oscar")
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        expired = jwt.encode(
            {"sub": str(user.id), "iat": past, "exp": past + timedelta(hours=1)},
            get_settings().secret_key,
            algorithm="HS256",
        )
        resp = client.get("/events", headers=session_headers(expired))
        assert resp.status_code == 401
        assert resp.json() == {"code": "unauthenticated", "message": "Session expired."}

    def test_token_for_unknown_user_rejected(self, client: TestClient, session_headers) -> None:
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "99999", "iat": now, "exp": now + timedelta(hours=1)},
            get_settings().secret_key,
            algorithm="HS256",
        )
        resp = client.get("/events", headers=session_headers(token))
        assert resp.status_code == 401


class TestAddAndList:
    def test_new_user_has_no_events(self, client: TestClient, signup, session_headers) -> None:
        token = signup("peggy")
        resp = client.get("/events", headers=session_headers(token))
        assert resp.status_code == 200
        assert resp.json() == []

    def test_added_event_listed_exactly_once(self, client: TestClient, signup, session_headers) -> None:
        token = signup("quentin")
        created = _add(client, session_headers(token), "Dentist", "2024-03-15", "Bring insurance card")
        assert created["message"] == "Event added"

        events = client.get("/events", headers=session_headers(token)).json()
        matching = [e for e in events if e["id"] == created["event"]["id"]]
        assert len(matching) == 1
        assert matching[0] == {
            "id": created["event"]["id"],
            "title": "Dentist",
            "description": "Bring insurance card",
            "date": "2024-03-15",
        }

    def test_events_listed_in_date_order(self, client: TestClient, signup, session_headers) -> None:
        token = signup("rupert")
        _add(client, session_headers(token), "Later", "2024-05-01")
        _add(client, session_headers(token), "Earlier", "2024-01-10")
        _add(client, session_headers(token), "Middle", "2024-03-15")
        titles = [e["title"] for e in client.get("/events", headers=session_headers(token)).json()]
        assert titles == ["Earlier", "Middle", "Later"]

    def test_description_is_required(self, client: TestClient, signup, session_headers) -> None:
        token = signup("sybil")
        resp = client.post(
            "/events",
            json={"title": "No notes", "date": "2024-03-15"},
            headers=session_headers(token),
        )
        assert resp.status_code == 400
        assert resp.json() == {"code": "validation_error", "message": "description: Field required"}
        assert client.get("/events", headers=session_headers(token)).json() == []

    def test_empty_description_accepted(self, client: TestClient, signup, session_headers) -> None:
        token = signup("sybil")
        created = _add(client, session_headers(token), "No notes", "2024-03-15", "")
        assert created["event"]["description"] == ""

    def test_users_never_see_each_others_events(self, client: TestClient, signup, session_headers) -> None:
        tokens = {name: signup(name) for name in ("userA", "userB", "userC")}
        for name, token in tokens.items():
            _add(client, session_headers(token), f"{name} meeting", "2024-03-15")
            _add(client, session_headers(token), f"{name} review", "2024-04-01")

        for name, token in tokens.items():
            events = client.get("/events", headers=session_headers(token)).json()
            assert len(events) == 2
            assert all(e["title"].startswith(name) for e in events), f"{name} saw foreign events: {events}"

    def test_owner_in_body_is_ignored(self, client: TestClient, signup, session_headers) -> None:
        """Ownership comes from the session, never from client-supplied fields."""
        victim = signup("victim")
        attacker = signup("attacker")
        resp = client.post(
            "/events",
            json={"title": "Planted", "description": "", "date": "2024-03-15", "owner_id": 1, "userId": 1},
            headers=session_headers(attacker),
        )
        assert resp.status_code == 201
        assert client.get("/events", headers=session_headers(victim)).json() == []


class TestDateNormalization:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2024-03-15T23:30:00-05:00", "2024-03-15"),  # would be 03-16 in UTC
            ("2024-03-15T00:30:00+09:00", "2024-03-15"),  # would be 03-14 in UTC
            ("2024-03-15", "2024-03-15"),
            ("03/15/2024", "2024-03-15"),
            ("Fri Mar 15 2024 23:30:00 GMT-0500 (Eastern Standard Time)", "2024-03-15"),
        ],
    )
    def test_calendar_date_preserved(
        self, client: TestClient, signup, session_headers, raw: str, expected: str
    ) -> None:
        token = signup("tina")
        created = _add(client, session_headers(token), "Dated event", raw)
        assert created["event"]["date"] == expected
        listed = client.get("/events", headers=session_headers(token)).json()
        assert [e["date"] for e in listed] == [expected]


class TestEventValidation:
    @pytest.mark.parametrize(
        ("body", "fragment"),
        [
            ({"title": "abc", "description": "", "date": "2024-03-15"}, "Title must be at least 4"),
            ({"title": "Valid title", "description": "", "date": "not a date"}, "Unrecognized date"),
            ({"title": "Valid title", "description": "", "date": "2024-02-30"}, "Unrecognized date"),
            ({"title": "Valid title", "description": ""}, "date: Field required"),
            ({"title": "Valid title", "description": 42, "date": "2024-03-15"}, "description:"),
            ({"title": 1234, "description": "", "date": "2024-03-15"}, "title:"),
        ],
    )
    def test_invalid_body_rejected(
        self, client: TestClient, signup, session_headers, body: dict, fragment: str
    ) -> None:
        token = signup("ursula")
        resp = client.post("/events", json=body, headers=session_headers(token))
        assert resp.status_code == 400
        data = resp.json()
        assert data["code"] == "validation_error"
        assert fragment in data["message"]
        assert client.get("/events", headers=session_headers(token)).json() == []
