"""Reminder notifications delivered to the current user."""

from typing import List

from fastapi import APIRouter, Depends

from event_planner_api.app.core.security import get_current_user
from event_planner_api.app.schemas.notification import NotificationRead
from event_planner_api.app.schemas.user import UserRead
from event_planner_api.app.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=List[NotificationRead])
async def list_notifications(current_user: UserRead = Depends(get_current_user)) -> List[NotificationRead]:
    return await NotificationService.list_notifications(current_user.id)
