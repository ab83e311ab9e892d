"""
Event endpoints for API v1.

All routes require a bearer token and only ever see the caller's own
events.  Creating an event also arms its reminder.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from event_planner_api.app.core.security import get_current_user
from event_planner_api.app.schemas.event import EventCreate, EventCreated, EventRead
from event_planner_api.app.schemas.user import UserRead
from event_planner_api.app.services.event_service import EventService
from event_planner_api.app.services.reminder_service import ReminderService

router = APIRouter()


@router.post("", response_model=EventCreated, status_code=status.HTTP_201_CREATED)
async def create_event(
    event: EventCreate,
    current_user: UserRead = Depends(get_current_user),
) -> EventCreated:
    """Create an event and schedule its reminder.

    The event and its reminder are stored together.  Reminders whose
    fire time is already past are not scheduled.
    """
    created = await EventService.create_event(current_user.id, event, on_created=ReminderService.arm)
    return EventCreated(event=created)


@router.get("", response_model=List[EventRead])
async def list_events(
    sort_by: str = Query("date", alias="sortBy"),
    filter_category: Optional[str] = Query(None, alias="filterCategory"),
    reminder_status: Optional[str] = Query(None, alias="reminderStatus"),
    current_user: UserRead = Depends(get_current_user),
) -> List[EventRead]:
    """List the caller's events.

    - **sortBy**: `date` (default); any other value sorts by category.
    - **filterCategory**: `Meeting`, `Birthday` or `Appointment`; other
      values match no events.
    - **reminderStatus**: `true` for events whose reminder fired; any
      other value for events whose reminder has not fired.
    """
    reminder_sent = None
    if reminder_status is not None:
        reminder_sent = reminder_status == "true"
    return await EventService.list_events(
        current_user.id,
        category=filter_category or None,
        reminder_sent=reminder_sent,
        sort_by=sort_by,
    )


@router.get("/{event_id}", response_model=EventRead)
async def get_event(
    event_id: int,
    current_user: UserRead = Depends(get_current_user),
) -> EventRead:
    return await EventService.get_event(current_user.id, event_id)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int,
    current_user: UserRead = Depends(get_current_user),
) -> None:
    """Delete an event together with its pending reminder."""
    await EventService.delete_event(current_user.id, event_id)
