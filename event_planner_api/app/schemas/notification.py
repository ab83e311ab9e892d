"""Pydantic models for reminder notifications."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    event_id: Optional[int] = Field(None, alias="eventId")
    content: str
    status: str
    created_at: datetime = Field(..., alias="createdAt")
