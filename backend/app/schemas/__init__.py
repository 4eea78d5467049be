from .calendar import (
    CalendarAuthURL,
    CalendarConnectionStatus,
    CalendarEventFields,
    CalendarSyncRequest,
    CalendarSyncResponse,
    OAuthToken,
    RemoteEventRef,
)
from .rsvp import (
    RSVPCount,
    RSVPRead,
    RSVPRequest,
    RSVPSubmitResponse,
    RSVPWithUser,
)

__all__ = [
    "CalendarAuthURL",
    "CalendarConnectionStatus",
    "CalendarEventFields",
    "CalendarSyncRequest",
    "CalendarSyncResponse",
    "OAuthToken",
    "RemoteEventRef",
    "RSVPCount",
    "RSVPRead",
    "RSVPRequest",
    "RSVPSubmitResponse",
    "RSVPWithUser",
]
