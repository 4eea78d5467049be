"""Durable RSVP records keyed by (event_id, user_id)."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, delete, select

from app.core.clock import utcnow
from app.core.exceptions import StoreError
from app.models import RSVP, Event, User
from app.schemas import RSVPCount, RSVPWithUser

logger = logging.getLogger(__name__)


def dialect_insert(session: Session):
    """Return the native ``insert`` construct supporting ON CONFLICT for the bound engine."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise StoreError(f"Upsert is not supported for dialect {dialect}")
    return insert


class RSVPStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_event(self, event_id: UUID) -> Optional[Event]:
        try:
            return self.session.get(Event, event_id)
        except SQLAlchemyError as exc:
            logger.error(f"Error loading event {event_id}: {exc}")
            raise StoreError("Failed to load event") from exc

    def get_user(self, user_id: UUID) -> Optional[User]:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as exc:
            logger.error(f"Error loading user {user_id}: {exc}")
            raise StoreError("Failed to load user") from exc

    def get(self, event_id: UUID, user_id: UUID) -> Optional[RSVP]:
        try:
            return self.session.exec(
                select(RSVP).where(RSVP.event_id == event_id, RSVP.user_id == user_id)
            ).one_or_none()
        except SQLAlchemyError as exc:
            logger.error(f"Error getting RSVP for event {event_id}, user {user_id}: {exc}")
            raise StoreError("Failed to read RSVP") from exc

    def upsert(self, event_id: UUID, user_id: UUID, status: str) -> RSVP:
        """Insert or update in one statement. Concurrent writers: last commit wins."""
        now = utcnow()
        insert = dialect_insert(self.session)
        statement = insert(RSVP).values(
            event_id=event_id,
            user_id=user_id,
            status=status,
            created_at=now,
            updated_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["event_id", "user_id"],
            set_={"status": statement.excluded.status, "updated_at": now},
        )
        try:
            self.session.exec(statement)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Error creating/updating RSVP: {exc}")
            raise StoreError("Failed to create/update RSVP") from exc

        # Identity map may hold a stale instance from the resolver read
        self.session.expire_all()
        rsvp = self.get(event_id, user_id)
        if rsvp is None:
            raise StoreError("RSVP missing after upsert")
        return rsvp

    def delete(self, event_id: UUID, user_id: UUID) -> bool:
        try:
            result = self.session.exec(
                delete(RSVP).where(RSVP.event_id == event_id, RSVP.user_id == user_id)
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Error deleting RSVP: {exc}")
            raise StoreError("Failed to delete RSVP") from exc
        return bool(result.rowcount)

    def count_by_status(self, event_id: UUID) -> RSVPCount:
        try:
            rows = self.session.exec(
                select(RSVP.status, func.count())
                .where(RSVP.event_id == event_id)
                .group_by(RSVP.status)
            ).all()
        except SQLAlchemyError as exc:
            logger.error(f"Error getting RSVP count for event {event_id}: {exc}")
            raise StoreError("Failed to get RSVP count") from exc
        return RSVPCount(**{status: count for status, count in rows})

    def list_with_users(self, event_id: UUID) -> List[RSVPWithUser]:
        try:
            rows = self.session.exec(
                select(RSVP, User)
                .join(User, User.id == RSVP.user_id)
                .where(RSVP.event_id == event_id)
                .order_by(RSVP.updated_at.desc(), RSVP.created_at.desc())
            ).all()
        except SQLAlchemyError as exc:
            logger.error(f"Error getting RSVPs for event {event_id}: {exc}")
            raise StoreError("Failed to get RSVPs") from exc

        return [
            RSVPWithUser(
                event_id=rsvp.event_id,
                user_id=rsvp.user_id,
                status=rsvp.status,
                created_at=rsvp.created_at,
                updated_at=rsvp.updated_at,
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
            )
            for rsvp, user in rows
        ]
