from .calendar_token import CalendarToken
from .event import Event
from .rsvp import RSVP, RSVP_STATUS_VALUES, RSVPStatus
from .user import User

__all__ = [
    "CalendarToken",
    "Event",
    "RSVP",
    "RSVP_STATUS_VALUES",
    "RSVPStatus",
    "User",
]
