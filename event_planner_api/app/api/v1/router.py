"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers.  Users routes define their
own paths (``/register``, ``/login``) and are included without a
prefix.
"""

from fastapi import APIRouter

from .endpoints import events, notifications, users

router = APIRouter()

router.include_router(users.router, tags=["users"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
