"""Celery tasks for RSVP email notifications.

Tasks receive a plain dict snapshot built at dispatch time and never touch
the database. Failures are logged here and end the task; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Tuple

from app.celery_app import celery_app
from app.core.config import get_settings
from app.services.email import (
    EmailTransport,
    render_attendee_confirmation,
    render_organizer_notification,
)

logger = logging.getLogger(__name__)


def _send_rendered(
    kind: str,
    recipient: str,
    context: Mapping[str, Any],
    render: Callable[[Mapping[str, Any]], Tuple[str, str]],
) -> Dict[str, Any]:
    event_id = context.get("event_id")
    try:
        subject, body = render(context)
        sent = EmailTransport(get_settings()).send(recipient, subject, body)
    except Exception as exc:
        logger.error(
            f"Error sending {kind} RSVP email to {recipient} for event {event_id}: {exc}",
            exc_info=True,
        )
        return {"success": False, "error": str(exc), "event_id": event_id}

    return {"success": True, "sent": sent, "event_id": event_id}


@celery_app.task(name="app.tasks.notifications.send_organizer_rsvp_email")
def send_organizer_rsvp_email_task(recipient: str, context: Dict[str, Any]) -> dict:
    """Tell the organizer that someone responded to their event."""
    return _send_rendered("organizer", recipient, context, render_organizer_notification)


@celery_app.task(name="app.tasks.notifications.send_attendee_rsvp_email")
def send_attendee_rsvp_email_task(recipient: str, context: Dict[str, Any]) -> dict:
    """Confirm the recorded response to the attendee."""
    return _send_rendered("attendee", recipient, context, render_attendee_confirmation)
