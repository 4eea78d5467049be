"""SMTP transport and RSVP email templates."""

from __future__ import annotations

import logging
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from typing import Any, Mapping, Tuple

from app.core.config import Settings

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "going": "Going",
    "maybe": "Maybe",
    "not_going": "Not Going",
}


def format_status(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def format_event_date(value: str | datetime) -> str:
    """Format as e.g. ``Monday, January 2, 2006 at 3:04 PM``."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    hour = value.hour % 12 or 12
    return f"{value:%A, %B} {value.day}, {value.year} at {hour}:{value:%M %p}"


def render_organizer_notification(context: Mapping[str, Any]) -> Tuple[str, str]:
    subject = f"New RSVP for {context['event_title']}"
    body = (
        "Hello,\n\n"
        f"{context['attendee_name']} has RSVP'd to your event "
        f"\"{context['event_title']}\" with status: {format_status(context['status'])}.\n\n"
        "Event Details:\n"
        f"- Date: {format_event_date(context['event_starts_at'])}\n"
        f"- Location: {context.get('event_location') or 'TBA'}\n\n"
        f"You can view all RSVPs for this event at: {context['event_url']}\n\n"
        "Thank you for using Evently!\n"
    )
    return subject, body


def render_attendee_confirmation(context: Mapping[str, Any]) -> Tuple[str, str]:
    subject = f"Your RSVP for {context['event_title']}"
    body = (
        f"Hello {context['attendee_name']},\n\n"
        f"Thank you for your RSVP to \"{context['event_title']}\". "
        f"Your response has been recorded as: {format_status(context['status'])}.\n\n"
        "Event Details:\n"
        f"- Date: {format_event_date(context['event_starts_at'])}\n"
        f"- Location: {context.get('event_location') or 'TBA'}\n"
        f"- Organizer: {context['organizer_name']}\n\n"
        f"You can view the event details at: {context['event_url']}\n\n"
        "Thank you for using Evently!\n"
    )
    return subject, body


class EmailTransport:
    """Blocking SMTP sender. Runs inside Celery workers, never on the request path."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def configured(self) -> bool:
        return self._settings.email_configured

    def send(self, to: str, subject: str, body: str) -> bool:
        """Send a plain-text email. Returns False when SMTP is not configured."""
        if not self.configured:
            logger.info("Email service not configured, skipping email send")
            return False

        settings = self._settings
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = settings.FROM_EMAIL
        msg["To"] = to

        server = smtplib.SMTP(
            settings.SMTP_HOST,
            settings.SMTP_PORT,
            timeout=settings.OUTBOUND_TIMEOUT_SECONDS,
        )
        try:
            if settings.SMTP_USE_TLS:
                server.starttls()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(settings.FROM_EMAIL, [to], msg.as_string())
        finally:
            server.quit()

        logger.info(f"Email sent to {to}: {subject}")
        return True
