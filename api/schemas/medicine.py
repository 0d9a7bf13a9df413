"""
Medicine Schemas
Pydantic models for medicine-related API requests and responses
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict, model_validator


# ==================== REQUEST SCHEMAS ====================

class MedicineCreate(BaseModel):
    """Schema for adding a medicine"""
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    purpose: Optional[str] = Field(None, max_length=255)
    start_date: date
    end_date: date
    times: List[str] = Field(default_factory=list, description='Dose times, e.g. ["08:00", "8:00 PM"]')
    timing_string: Optional[str] = Field(None, max_length=255, description='e.g. "9:00 AM, 9:00 PM"')

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class MedicineUpdate(BaseModel):
    """Schema for updating a medicine"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    purpose: Optional[str] = Field(None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    times: Optional[List[str]] = None
    timing_string: Optional[str] = Field(None, max_length=255)


class DoseAction(BaseModel):
    """Optional body for dose logging endpoints"""
    day: Optional[date] = Field(None, description="Defaults to today")


# ==================== RESPONSE SCHEMAS ====================

class ScheduledDoseResponse(BaseModel):
    """Schema for a scheduled dose"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    time_of_day: str
    instruction: Optional[str] = None


class MedicineResponse(BaseModel):
    """Schema for medicine response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    dosage: str
    purpose: Optional[str] = None
    timing_string: Optional[str] = None
    is_active: bool
    start_date: date
    end_date: date
    inactive_date: Optional[datetime] = None
    doses: List[ScheduledDoseResponse] = []
    created_at: datetime


class MedicineList(BaseModel):
    """Schema for list of medicines"""
    medicines: List[MedicineResponse]
    total: int
    active_count: int


class DoseLogResponse(BaseModel):
    """Schema for a dose log event"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    medicine_id: int
    scheduled_dose_id: int
    date_recorded: datetime
    is_taken: bool
    taken_at: Optional[datetime] = None
    logged_by: str


class DoseToggleResponse(BaseModel):
    """Result of toggling a dose"""
    taken: bool
    event: Optional[DoseLogResponse] = None


class MaterializeResponse(BaseModel):
    """Missed dose events recorded by a materialization run"""
    recorded: int
    events: List[DoseLogResponse]


class MedicineDayView(BaseModel):
    """A medicine with every dose of the day and its state"""
    medicine_id: int
    name: str
    dosage: str
    display_name: str
    timing_frequency: str
    is_active: bool
    is_active_on_day: bool
    has_period_ended: bool
    is_future: bool
    has_missed_dose_today: bool
    doses: List[Dict[str, Any]]
