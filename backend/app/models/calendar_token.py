from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class CalendarToken(SQLModel, table=True):
    """Google Calendar OAuth credentials, one row per connected user."""

    __tablename__ = "calendar_tokens"

    user_id: UUID = Field(foreign_key="users.id", primary_key=True, nullable=False)
    access_token: str = Field(max_length=4096)
    refresh_token: Optional[str] = Field(default=None, max_length=4096)
    token_type: str = Field(default="Bearer", max_length=32)
    scope: Optional[str] = Field(default=None, max_length=1024)
    expiry: datetime = Field(nullable=False, sa_type=DateTime(timezone=True))
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
