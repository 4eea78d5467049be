from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, SQLModel


class RSVPStatus(str, Enum):
    GOING = "going"
    MAYBE = "maybe"
    NOT_GOING = "not_going"


RSVP_STATUS_VALUES = tuple(item.value for item in RSVPStatus)


class RSVP(SQLModel, table=True):
    """Attendance intent of one user for one event."""

    __tablename__ = "rsvps"
    __table_args__ = (
        CheckConstraint(
            "status IN ('going', 'maybe', 'not_going')", name="ck_rsvps_status"
        ),
    )

    event_id: UUID = Field(
        foreign_key="events.id", primary_key=True, nullable=False, index=True
    )
    user_id: UUID = Field(foreign_key="users.id", primary_key=True, nullable=False)
    status: str = Field(max_length=20, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
