"""
Reminder Schemas
Pydantic models for reminder API requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict, model_validator

from actions.snapshots import ReminderType
from actions.reminder_engine import SlotState


class ReminderCreate(BaseModel):
    """Schema for creating a reminder"""
    title: str = Field(..., min_length=1, max_length=255)
    reminder_type: ReminderType = ReminderType.CHECKUP
    times: List[str] = Field(..., min_length=1, description='e.g. ["07:00", "7:00 PM"]')
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class ReminderUpdate(BaseModel):
    """Schema for updating a reminder"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    reminder_type: Optional[ReminderType] = None
    times: Optional[List[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class SlotToggle(BaseModel):
    """Slot to complete or reopen today"""
    time: str = Field(..., description='Slot time, e.g. "07:00"')


class ReminderResponse(BaseModel):
    """Schema for reminder response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    reminder_type: ReminderType
    times: List[str]
    start_date: date
    end_date: date
    is_active: bool
    completed_times: List[str]
    last_reset_date: Optional[datetime] = None


class SlotToggleResponse(BaseModel):
    """New state of a toggled slot"""
    reminder_id: int
    time: str
    state: SlotState
    completed: bool


class ReminderSlotResponse(BaseModel):
    reminder_id: int
    title: str
    time: str
    scheduled_at: datetime
    state: SlotState


class ReminderToday(BaseModel):
    reminder_id: int
    title: str
    reminder_type: ReminderType
    has_period_ended: bool
    is_future: bool
    slots: List[ReminderSlotResponse]


class ReminderSummaryResponse(BaseModel):
    active_reminders: int
    total_slots: int
    completed: int
    overdue: int
    pending: int


class ReminderTodayResponse(BaseModel):
    """Today's reminder slots with summary counts"""
    date: date
    reminders: List[ReminderToday]
    summary: ReminderSummaryResponse
