from __future__ import annotations

from functools import lru_cache
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.core.config import get_settings
from app.core.security import verify_token
from app.db import SessionDep
from app.models import User
from app.services.calendar_sync import CalendarTokenCoordinator, CalendarTokenStore
from app.services.google_calendar import GoogleCalendarClient, GoogleOAuthClient
from app.services.notifications import NotificationDispatcher
from app.services.rsvp import RSVPCoordinator
from app.services.rsvp_store import RSVPStore

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{get_settings().API_V1_STR}/auth/login"
)


def get_current_user(
    session: SessionDep,
    token: str = Depends(oauth2_scheme),
) -> User:
    try:
        payload = verify_token(token, token_type="access")
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    user = RSVPStore(session).get_user(user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive or missing user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


def get_rsvp_coordinator(
    session: SessionDep,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> RSVPCoordinator:
    return RSVPCoordinator(session, dispatcher, get_settings())


@lru_cache
def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(get_settings())


@lru_cache
def get_calendar_client() -> GoogleCalendarClient:
    return GoogleCalendarClient(get_settings())


def get_calendar_coordinator(
    session: SessionDep,
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
) -> CalendarTokenCoordinator:
    return CalendarTokenCoordinator(CalendarTokenStore(session), oauth, calendar)
