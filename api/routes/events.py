"""
api/routes/events.py -- Calendar event REST endpoints.

Routes:
  POST /events -- add an event to the caller's calendar (requires auth)
  GET  /events -- list the caller's events, ascending by date (requires auth)

Ownership: owner_id always comes from get_current_user(), never from the
request body. EventCreate has no owner field at all, so a client cannot even
attempt to write into another user's calendar.
"""

from fastapi import APIRouter, Depends, Request

from api.models import EventCreate, EventCreatedResponse, EventResponse
from auth.dependencies import get_current_user
from auth.models import User
from events.store import EventStore

router = APIRouter()


@router.post("/events", response_model=EventCreatedResponse, status_code=201)
def add_event(
    request: Request,
    body: EventCreate,
    current_user: User = Depends(get_current_user),
) -> EventCreatedResponse:
    """Add an event. body.date has already been normalized to YYYY-MM-DD."""
    event_store: EventStore = request.app.state.event_store
    event = event_store.insert(
        owner_id=current_user.id,
        title=body.title,
        description=body.description,
        date=body.date,
    )
    return EventCreatedResponse(event=EventResponse.from_event(event))


@router.get("/events", response_model=list[EventResponse])
def list_events(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> list[EventResponse]:
    """List every event owned by the caller."""
    event_store: EventStore = request.app.state.event_store
    return [EventResponse.from_event(e) for e in event_store.list_by_owner(current_user.id)]
