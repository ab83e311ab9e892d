"""
Pydantic models for event data.

Field names are snake_case in Python and camelCase on the wire
(``reminderMinutesBefore``, ``reminderSent``, ``ownerId``).  Both
spellings are accepted on input.  ``EventCreate`` is the request body;
``EventRead`` is what the API returns.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# One (leap) year.  Longer offsets are rejected rather than stored.
MAX_REMINDER_MINUTES_BEFORE = 366 * 24 * 60


class EventCategory(str, Enum):
    MEETING = "Meeting"
    BIRTHDAY = "Birthday"
    APPOINTMENT = "Appointment"


class EventSortField(str, Enum):
    DATE = "date"
    CATEGORY = "category"


class EventCreate(BaseModel):
    """Schema for creating an event."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., examples=["Standup"])
    description: Optional[str] = Field(None, examples=["Daily team sync"])
    date: datetime = Field(..., examples=["2026-11-01T09:00:00Z"])
    category: EventCategory = Field(..., examples=["Meeting"])
    reminder_minutes_before: Optional[int] = Field(
        None,
        alias="reminderMinutesBefore",
        ge=0,
        le=MAX_REMINDER_MINUTES_BEFORE,
        examples=[15],
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    @field_validator("date")
    @classmethod
    def date_in_utc_range(cls, value: datetime) -> datetime:
        """Normalise to UTC; naive dates are taken as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        try:
            return value.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError("date is out of range") from None

    @model_validator(mode="after")
    def reminder_time_in_range(self) -> "EventCreate":
        if self.reminder_minutes_before is not None:
            try:
                self.date - timedelta(minutes=self.reminder_minutes_before)
            except OverflowError:
                raise ValueError("reminderMinutesBefore reaches before the earliest supported date") from None
        return self


class EventRead(BaseModel):
    """Schema for reading an event from the API."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    owner_id: int = Field(..., alias="ownerId")
    name: str
    description: Optional[str] = None
    date: datetime
    category: EventCategory
    reminder_minutes_before: Optional[int] = Field(None, alias="reminderMinutesBefore")
    reminder_sent: bool = Field(False, alias="reminderSent")


class EventCreated(BaseModel):
    message: str = "Event created"
    event: EventRead
