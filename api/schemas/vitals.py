"""
Vitals Schemas
Pydantic models for vital reading API requests and responses
"""

from typing import Optional, List
from datetime import datetime, date, time
from pydantic import BaseModel, Field, ConfigDict, model_validator

from actions.periods import PeriodKind
from actions.snapshots import SugarContext, VitalType


class VitalReadingCreate(BaseModel):
    """Schema for logging a reading"""
    vital_type: VitalType
    reading_date: date
    reading_time: time
    systolic: Optional[int] = Field(None, gt=0, le=300)
    diastolic: Optional[int] = Field(None, gt=0, le=200)
    sugar_level: Optional[float] = Field(None, gt=0, le=1000)
    sugar_context: Optional[SugarContext] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_payload(self):
        if self.vital_type == VitalType.BP and (self.systolic is None or self.diastolic is None):
            raise ValueError("systolic and diastolic are required for bp readings")
        if self.vital_type == VitalType.SUGAR and self.sugar_level is None:
            raise ValueError("sugar_level is required for sugar readings")
        return self


class VitalReadingResponse(BaseModel):
    """Schema for reading response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    vital_type: VitalType
    reading_date: date
    reading_time: time
    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    sugar_level: Optional[float] = None
    sugar_context: Optional[SugarContext] = None
    notes: Optional[str] = None


class VitalReadingList(BaseModel):
    readings: List[VitalReadingResponse]
    total: int


class LatestReading(BaseModel):
    id: int
    recorded_at: datetime
    value: str


class VitalsSummaryResponse(BaseModel):
    """Latest readings and averages over a period"""
    period: PeriodKind
    window_start: datetime
    window_end: datetime
    latest_bp: Optional[LatestReading] = None
    latest_sugar: Optional[LatestReading] = None
    bp_status: Optional[str] = None
    sugar_status: Optional[str] = None
    average_bp: str
    average_systolic: Optional[int] = None
    average_diastolic: Optional[int] = None
    average_sugar: Optional[int] = None
    bp_count: int
    sugar_count: int
