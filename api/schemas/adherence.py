"""
Adherence Schemas
Pydantic models for adherence API responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel

from actions.periods import PeriodKind


class MedicineAdherenceResponse(BaseModel):
    """Adherence of one medicine"""
    medicine_id: int
    name: str
    dosage: str
    taken: int
    total: int
    percentage: Optional[int] = None
    display: str


class DailyAdherencePointResponse(BaseModel):
    """One day of the chart series"""
    date: date
    taken: int
    total: int
    percentage: int


class AdherenceResponse(BaseModel):
    """Adherence over a reporting period"""
    period: PeriodKind
    window_start: datetime
    window_end: datetime
    taken: int
    total: int
    percentage: Optional[int] = None
    display: str
    per_medicine: List[MedicineAdherenceResponse]
    daily_series: List[DailyAdherencePointResponse]
