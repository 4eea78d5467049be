from .config import settings
from .security import (
    create_access_token,
    issue_calendar_state,
    verify_calendar_state,
    verify_token,
)

__all__ = [
    "settings",
    "create_access_token",
    "issue_calendar_state",
    "verify_calendar_state",
    "verify_token",
]
