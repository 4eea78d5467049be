from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class RSVPRequest(BaseModel):
    # Checked against RSVPStatus by the coordinator so that an unknown value
    # is a 400 from the service layer, not a schema error.
    status: str


class RSVPRead(BaseModel):
    event_id: UUID
    user_id: UUID
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RSVPWithUser(RSVPRead):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str


class RSVPCount(BaseModel):
    going: int = 0
    maybe: int = 0
    not_going: int = 0


class RSVPSubmitResponse(BaseModel):
    message: str
    rsvp: RSVPRead
