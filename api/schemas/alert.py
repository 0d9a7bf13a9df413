"""
Alert Schemas
Pydantic models for alert settings and alert history
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict

from actions.snapshots import AlertStatus, AlertType


# ==================== REQUEST SCHEMAS ====================

class AlertSettingsUpdate(BaseModel):
    """Schema for updating thresholds and enable flags"""
    min_systolic: Optional[int] = Field(None, gt=0)
    max_systolic: Optional[int] = Field(None, gt=0)
    min_diastolic: Optional[int] = Field(None, gt=0)
    max_diastolic: Optional[int] = Field(None, gt=0)
    fasting_sugar_min: Optional[int] = Field(None, gt=0)
    fasting_sugar_max: Optional[int] = Field(None, gt=0)
    after_meal_sugar_min: Optional[int] = Field(None, gt=0)
    after_meal_sugar_max: Optional[int] = Field(None, gt=0)
    enable_emergency_alerts: Optional[bool] = None
    enable_reminder_alerts: Optional[bool] = None
    enable_report_alerts: Optional[bool] = None


class ContactCreate(BaseModel):
    """Emergency contact to add"""
    email: str = Field(..., min_length=1, max_length=255)


# ==================== RESPONSE SCHEMAS ====================

class AlertSettingsResponse(BaseModel):
    """Schema for alert settings response"""
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    min_systolic: int
    max_systolic: int
    min_diastolic: int
    max_diastolic: int
    fasting_sugar_min: int
    fasting_sugar_max: int
    after_meal_sugar_min: int
    after_meal_sugar_max: int
    emergency_contacts: List[str]
    enable_emergency_alerts: bool
    enable_reminder_alerts: bool
    enable_report_alerts: bool


class ContactList(BaseModel):
    contacts: List[str]


class AlertResponse(BaseModel):
    """Schema for an alert"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    user_id: int
    alert_type: AlertType
    condition_tag: Optional[str] = None
    alert_day: date
    recipients: str
    subject: str
    content: str
    status: AlertStatus
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


class AlertList(BaseModel):
    alerts: List[AlertResponse]
    total: int


class AlertStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    last_sent_at: Optional[datetime] = None


class DailyChecksResponse(BaseModel):
    """Outcome of the daily checks for a user"""
    user_id: int
    run_at: datetime
    deactivated_medicines: List[int]
    reminders_reset: int
    missed_doses_recorded: int
    alerts: List[Dict[str, Any]]


class AlertRecordResponse(BaseModel):
    """An alert raised by an evaluation, digest or test run"""
    id: Optional[int] = None
    user_id: int
    alert_type: AlertType
    condition_tag: Optional[str] = None
    alert_day: date
    recipients: List[str]
    subject: str
    content: str
    status: AlertStatus
    sent_at: Optional[datetime] = None
    metadata: Dict[str, Any] = {}
