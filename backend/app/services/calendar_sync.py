"""Calendar OAuth token lifecycle and event sync.

Per user: disconnected -> connected (valid) -> connected (expired) ->
connected (valid, after refresh). Refresh happens inline in the request that
needs the token and is never retried here.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, delete, select

from app.core.clock import ensure_utc, utcnow
from app.core.exceptions import NotConnectedError, StoreError
from app.models import CalendarToken, Event
from app.schemas import CalendarEventFields, OAuthToken, RemoteEventRef
from app.services.google_calendar import GoogleCalendarClient, GoogleOAuthClient
from app.services.rsvp_store import dialect_insert

logger = logging.getLogger(__name__)

DEFAULT_EVENT_DURATION = timedelta(hours=2)


def _rfc3339(value) -> str:
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def build_event_body(event: Union[Event, CalendarEventFields]) -> Dict[str, Any]:
    """Calendar v3 event resource. Events without an end time last two hours."""
    starts_at = ensure_utc(event.starts_at)
    ends_at = ensure_utc(event.ends_at) if event.ends_at else starts_at + DEFAULT_EVENT_DURATION
    body: Dict[str, Any] = {
        "summary": event.title,
        "start": {"dateTime": _rfc3339(starts_at), "timeZone": "UTC"},
        "end": {"dateTime": _rfc3339(ends_at), "timeZone": "UTC"},
    }
    if event.description:
        body["description"] = event.description
    if event.location:
        body["location"] = event.location
    return body


class CalendarTokenStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: UUID) -> Optional[OAuthToken]:
        try:
            row = self.session.exec(
                select(CalendarToken).where(CalendarToken.user_id == user_id)
            ).one_or_none()
        except SQLAlchemyError as exc:
            logger.error(f"Error reading calendar token for user {user_id}: {exc}")
            raise StoreError("Failed to read calendar token") from exc
        if row is None:
            return None
        token = OAuthToken.model_validate(row)
        token.expiry = ensure_utc(token.expiry)
        return token

    def upsert(self, user_id: UUID, token: OAuthToken) -> None:
        now = utcnow()
        values = {
            "access_token": token.access_token,
            "refresh_token": token.refresh_token,
            "token_type": token.token_type,
            "scope": token.scope,
            "expiry": ensure_utc(token.expiry),
            "updated_at": now,
        }
        insert = dialect_insert(self.session)
        statement = insert(CalendarToken).values(user_id=user_id, created_at=now, **values)
        statement = statement.on_conflict_do_update(
            index_elements=["user_id"], set_=values
        )
        try:
            self.session.exec(statement)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Error storing calendar token for user {user_id}: {exc}")
            raise StoreError("Failed to store calendar token") from exc

    def delete(self, user_id: UUID) -> None:
        try:
            self.session.exec(delete(CalendarToken).where(CalendarToken.user_id == user_id))
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("Failed to delete calendar token") from exc


class CalendarTokenCoordinator:
    def __init__(
        self,
        store: CalendarTokenStore,
        oauth: GoogleOAuthClient,
        calendar: GoogleCalendarClient,
        clock: Callable[[], Any] = utcnow,
    ) -> None:
        self.token_store = store
        self.oauth = oauth
        self.calendar = calendar
        self.clock = clock

    def get_auth_url(self, state_nonce: str) -> str:
        return self.oauth.authorization_url(state_nonce)

    def exchange(self, code: str) -> OAuthToken:
        """One-shot code exchange. ``ExchangeError`` means restart the flow."""
        return self.oauth.exchange_code(code)

    def store(self, user_id: UUID, token: OAuthToken) -> None:
        self.token_store.upsert(user_id, token)
        logger.info(f"Calendar token stored for user {user_id}")

    def load(self, user_id: UUID) -> OAuthToken:
        token = self.token_store.get(user_id)
        if token is None:
            raise NotConnectedError("Google Calendar authorization required")
        return token

    def is_connected(self, user_id: UUID) -> bool:
        return self.token_store.get(user_id) is not None

    def disconnect(self, user_id: UUID) -> None:
        self.token_store.delete(user_id)
        logger.info(f"Calendar disconnected for user {user_id}")

    def ensure_fresh(self, token: OAuthToken, user_id: UUID) -> OAuthToken:
        if not token.is_expired(self.clock()):
            return token
        refreshed = self.oauth.refresh(token)
        self.store(user_id, refreshed)
        logger.info(f"Calendar token refreshed for user {user_id}")
        return refreshed

    def add_event(
        self, token: OAuthToken, event: Union[Event, CalendarEventFields]
    ) -> RemoteEventRef:
        return self.calendar.insert_event(token, build_event_body(event))

    def sync_event(
        self, user_id: UUID, event: Union[Event, CalendarEventFields]
    ) -> RemoteEventRef:
        """Load the user's token, refresh it if expired, then insert the event."""
        token = self.ensure_fresh(self.load(user_id), user_id)
        ref = self.add_event(token, event)
        logger.info(f"Event added to Google Calendar for user {user_id}: {ref.id}")
        return ref
