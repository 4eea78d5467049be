from fastapi import APIRouter

from app.api.v1 import calendar, health, rsvps


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(rsvps.router, prefix="/events", tags=["rsvps"])
api_router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
