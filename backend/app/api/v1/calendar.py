from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from app.api.deps import get_calendar_coordinator, get_current_user
from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.security import issue_calendar_state, verify_calendar_state
from app.db import SessionDep
from app.models import User
from app.schemas import (
    CalendarAuthURL,
    CalendarConnectionStatus,
    CalendarSyncRequest,
    CalendarSyncResponse,
)
from app.services.calendar_sync import CalendarTokenCoordinator
from app.services.rsvp_store import RSVPStore

router = APIRouter()


@router.get("/authorize", response_model=CalendarAuthURL, summary="Start Google Calendar OAuth")
def authorize_calendar(
    coordinator: CalendarTokenCoordinator = Depends(get_calendar_coordinator),
    current_user: User = Depends(get_current_user),
) -> CalendarAuthURL:
    state = issue_calendar_state(current_user.id)
    return CalendarAuthURL(auth_url=coordinator.get_auth_url(state))


@router.get("/callback", summary="Google Calendar OAuth callback")
def calendar_callback(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    coordinator: CalendarTokenCoordinator = Depends(get_calendar_coordinator),
) -> RedirectResponse:
    # State is checked before anything is sent to the provider
    user_id = verify_calendar_state(state)
    if not code:
        raise ValidationError("Missing authorization code")

    token = coordinator.exchange(code)
    coordinator.store(user_id, token)
    return RedirectResponse(
        url=f"{settings.FRONTEND_URL.rstrip('/')}/calendar-connected",
        status_code=status.HTTP_302_FOUND,
    )


@router.post("/events", response_model=CalendarSyncResponse, summary="Add an event to Google Calendar")
def add_event_to_calendar(
    payload: CalendarSyncRequest,
    session: SessionDep,
    coordinator: CalendarTokenCoordinator = Depends(get_calendar_coordinator),
    current_user: User = Depends(get_current_user),
) -> CalendarSyncResponse:
    if payload.event_id is not None:
        event = RSVPStore(session).get_event(payload.event_id)
        if event is None:
            raise NotFoundError("Event not found")
    else:
        event = payload.event

    ref = coordinator.sync_event(current_user.id, event)
    return CalendarSyncResponse(
        message="Event added to Google Calendar successfully",
        calendar_event=ref,
    )


@router.get("/status", response_model=CalendarConnectionStatus, summary="Calendar connection status")
def calendar_status(
    coordinator: CalendarTokenCoordinator = Depends(get_calendar_coordinator),
    current_user: User = Depends(get_current_user),
) -> CalendarConnectionStatus:
    return CalendarConnectionStatus(connected=coordinator.is_connected(current_user.id))


@router.delete("/connection", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
def disconnect_calendar(
    coordinator: CalendarTokenCoordinator = Depends(get_calendar_coordinator),
    current_user: User = Depends(get_current_user),
) -> None:
    coordinator.disconnect(current_user.id)
