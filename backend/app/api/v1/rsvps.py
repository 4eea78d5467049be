from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_current_user, get_rsvp_coordinator
from app.core.config import settings
from app.core.limiter import limiter
from app.models import User
from app.schemas import (
    RSVPCount,
    RSVPRead,
    RSVPRequest,
    RSVPSubmitResponse,
    RSVPWithUser,
)
from app.services.rsvp import RSVPCoordinator

router = APIRouter()


@router.api_route(
    "/{event_id}/rsvp",
    methods=["POST", "PUT"],
    response_model=RSVPSubmitResponse,
    summary="Create or update the current user's RSVP",
)
@limiter.limit(settings.RSVP_RATE_LIMIT)
def submit_rsvp(
    request: Request,
    event_id: UUID,
    payload: RSVPRequest,
    coordinator: RSVPCoordinator = Depends(get_rsvp_coordinator),
    current_user: User = Depends(get_current_user),
) -> RSVPSubmitResponse:
    rsvp = coordinator.submit(event_id, current_user.id, payload.status)
    return RSVPSubmitResponse(
        message="RSVP updated successfully",
        rsvp=RSVPRead.model_validate(rsvp),
    )


@router.get(
    "/{event_id}/rsvp",
    response_model=Optional[RSVPRead],
    summary="Get the current user's RSVP",
)
def get_rsvp(
    event_id: UUID,
    coordinator: RSVPCoordinator = Depends(get_rsvp_coordinator),
    current_user: User = Depends(get_current_user),
) -> Optional[RSVPRead]:
    rsvp = coordinator.get(event_id, current_user.id)
    return RSVPRead.model_validate(rsvp) if rsvp else None


@router.delete("/{event_id}/rsvp", summary="Withdraw the current user's RSVP")
def delete_rsvp(
    event_id: UUID,
    coordinator: RSVPCoordinator = Depends(get_rsvp_coordinator),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    coordinator.withdraw(event_id, current_user.id)
    return {"message": "RSVP deleted successfully"}


@router.get(
    "/{event_id}/rsvp/count",
    response_model=RSVPCount,
    summary="Count RSVPs by status",
)
def get_rsvp_count(
    event_id: UUID,
    coordinator: RSVPCoordinator = Depends(get_rsvp_coordinator),
) -> RSVPCount:
    return coordinator.get_count(event_id)


@router.get(
    "/{event_id}/rsvps",
    response_model=List[RSVPWithUser],
    summary="List RSVPs for an event (organizer only)",
)
def list_rsvps(
    event_id: UUID,
    coordinator: RSVPCoordinator = Depends(get_rsvp_coordinator),
    current_user: User = Depends(get_current_user),
) -> List[RSVPWithUser]:
    return coordinator.list(event_id, current_user.id)
