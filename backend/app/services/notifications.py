from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

from app.core.celery_utils import safe_celery_delay
from app.core.clock import ensure_utc
from app.models import Event, User
from app.tasks.notifications import (
    send_attendee_rsvp_email_task,
    send_organizer_rsvp_email_task,
)

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    ORGANIZER = "organizer"
    ATTENDEE = "attendee"


_TASKS = {
    NotificationKind.ORGANIZER: send_organizer_rsvp_email_task,
    NotificationKind.ATTENDEE: send_attendee_rsvp_email_task,
}


def build_rsvp_context(
    event: Event,
    attendee: User,
    organizer: Optional[User],
    status: str,
    previous_status: Optional[str],
    frontend_url: str,
) -> Dict[str, Any]:
    """Snapshot everything a notification needs as plain JSON values."""
    return {
        "event_id": str(event.id),
        "event_title": event.title,
        "event_starts_at": ensure_utc(event.starts_at).isoformat(),
        "event_location": event.location,
        "event_url": f"{frontend_url.rstrip('/')}/event/{event.id}",
        "organizer_name": organizer.display_name if organizer else "",
        "organizer_email": organizer.email if organizer else "",
        "attendee_name": attendee.display_name,
        "attendee_email": attendee.email,
        "status": status,
        "previous_status": previous_status,
    }


class NotificationDispatcher:
    """Hands notifications to Celery without waiting for them."""

    def dispatch(
        self,
        kind: NotificationKind,
        recipient: Optional[str],
        context: Dict[str, Any],
    ) -> None:
        if not recipient:
            logger.debug(
                f"Skipping {kind.value} notification for event "
                f"{context.get('event_id')}: no recipient address"
            )
            return

        # Queue errors are logged inside safe_celery_delay and never reach the caller
        safe_celery_delay(_TASKS[kind], recipient, context)
