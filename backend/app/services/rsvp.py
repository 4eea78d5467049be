"""RSVP submission, withdrawal and read paths."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlmodel import Session

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.models import RSVP, RSVP_STATUS_VALUES, Event, User
from app.schemas import RSVPCount, RSVPWithUser
from app.services.notifications import (
    NotificationDispatcher,
    NotificationKind,
    build_rsvp_context,
)
from app.services.rsvp_state import RSVPTransition, resolve
from app.services.rsvp_store import RSVPStore

logger = logging.getLogger(__name__)


def validate_status(status: str) -> str:
    if status not in RSVP_STATUS_VALUES:
        raise ValidationError(
            "Invalid status. Must be 'going', 'maybe', or 'not_going'"
        )
    return status


class RSVPCoordinator:
    def __init__(
        self,
        session: Session,
        dispatcher: NotificationDispatcher,
        settings: Settings = default_settings,
    ) -> None:
        self.session = session
        self.store = RSVPStore(session)
        self.dispatcher = dispatcher
        self.settings = settings

    def _get_event(self, event_id: UUID) -> Event:
        event = self.store.get_event(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        return event

    def submit(self, event_id: UUID, user_id: UUID, status: str) -> RSVP:
        """Record the user's status for the event.

        Every read happens before the upsert, so a database failure never
        leaves a partial write behind.
        Notifications are queued only for a first response or a changed
        status and are never awaited.
        """
        validate_status(status)
        event = self._get_event(event_id)
        attendee = self.store.get_user(user_id)
        if attendee is None:
            raise NotFoundError("User not found")
        organizer = self.store.get_user(event.organizer_id)
        if organizer is None:
            logger.warning(
                f"Could not load organizer {event.organizer_id} for event {event.id}"
            )

        transition = resolve(self.store, event_id, user_id, status)
        rsvp = self.store.upsert(event_id, user_id, status)

        if transition.should_notify:
            self._notify(event, attendee, organizer, status, transition)

        logger.info(
            f"RSVP updated for event {event_id} by user {user_id} with status {status} "
            f"(notified={transition.should_notify})"
        )
        return rsvp

    def _notify(
        self,
        event: Event,
        attendee: User,
        organizer: Optional[User],
        status: str,
        transition: RSVPTransition,
    ) -> None:
        # The RSVP is committed at this point; notification problems stay here
        try:
            context = build_rsvp_context(
                event,
                attendee,
                organizer,
                status,
                transition.previous_status,
                self.settings.FRONTEND_URL,
            )

            # Organizers responding to their own event get only the confirmation
            if organizer is not None and organizer.id != attendee.id:
                self.dispatcher.dispatch(
                    NotificationKind.ORGANIZER, organizer.email, context
                )
            self.dispatcher.dispatch(NotificationKind.ATTENDEE, attendee.email, context)
        except Exception as e:
            logger.error(
                f"Failed to queue RSVP notifications for event {event.id}: {e}",
                exc_info=True,
            )

    def get(self, event_id: UUID, user_id: UUID) -> Optional[RSVP]:
        return self.store.get(event_id, user_id)

    def withdraw(self, event_id: UUID, user_id: UUID) -> None:
        """Delete the user's RSVP. Withdrawing a missing RSVP is not an error."""
        existed = self.store.delete(event_id, user_id)
        logger.info(
            f"RSVP deleted for event {event_id} by user {user_id} (existed={existed})"
        )

    def get_count(self, event_id: UUID) -> RSVPCount:
        return self.store.count_by_status(event_id)

    def list(self, event_id: UUID, requester_id: UUID) -> List[RSVPWithUser]:
        """All responses for an event. Only the organizer may see the attendee list."""
        event = self._get_event(event_id)
        if event.organizer_id != requester_id:
            logger.warning(
                f"User {requester_id} tried to access RSVPs for event {event_id} "
                f"organized by {event.organizer_id}"
            )
            raise PermissionDeniedError(
                "Only the event creator can view the attendee list"
            )
        return self.store.list_with_users(event_id)
