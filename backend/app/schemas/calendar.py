from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator

from app.core.clock import ensure_utc


class OAuthToken(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    scope: Optional[str] = None
    expiry: datetime

    model_config = ConfigDict(from_attributes=True)

    def is_expired(self, now: datetime) -> bool:
        return ensure_utc(self.expiry) <= ensure_utc(now)


class CalendarEventFields(BaseModel):
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    starts_at: datetime
    ends_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_ends_after_start(self) -> "CalendarEventFields":
        if self.ends_at is not None and ensure_utc(self.ends_at) < ensure_utc(self.starts_at):
            raise ValueError("ends_at must be greater than or equal to starts_at")
        return self


class CalendarSyncRequest(BaseModel):
    """Either a stored event id or the literal event fields."""

    event_id: Optional[UUID] = None
    event: Optional[CalendarEventFields] = None

    @model_validator(mode="after")
    def check_one_source(self) -> "CalendarSyncRequest":
        if (self.event_id is None) == (self.event is None):
            raise ValueError("Provide exactly one of event_id or event")
        return self


class RemoteEventRef(BaseModel):
    id: str
    html_link: Optional[str] = None
    status: Optional[str] = None


class CalendarAuthURL(BaseModel):
    auth_url: str


class CalendarConnectionStatus(BaseModel):
    connected: bool


class CalendarSyncResponse(BaseModel):
    message: str
    calendar_event: RemoteEventRef
