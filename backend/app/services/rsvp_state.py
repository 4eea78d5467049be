from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from app.services.rsvp_store import RSVPStore


@dataclass(frozen=True)
class RSVPTransition:
    is_new: bool
    is_transition: bool
    previous_status: Optional[str] = None

    @property
    def should_notify(self) -> bool:
        # Resubmitting the same status still bumps updated_at but stays silent
        return self.is_new or self.is_transition


def resolve(
    store: RSVPStore,
    event_id: UUID,
    user_id: UUID,
    new_status: str,
) -> RSVPTransition:
    """Compare an incoming status with the stored one. Raises ``StoreError`` on read failure."""
    previous = store.get(event_id, user_id)
    if previous is None:
        return RSVPTransition(is_new=True, is_transition=False)
    return RSVPTransition(
        is_new=False,
        is_transition=previous.status != new_status,
        previous_status=previous.status,
    )
