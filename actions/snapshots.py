"""
Engine Snapshots
Immutable input/output types for the adherence and alert engine.

The engine never touches the database: services build these snapshots from
ORM rows and hand them in together with a single reference "now".
"""

from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from config import engine_config


class VitalType(str, Enum):
    """Kinds of vital readings"""
    BP = "bp"
    SUGAR = "sugar"


class SugarContext(str, Enum):
    """When a sugar reading was taken"""
    FASTING = "fasting"
    AFTER_MEAL = "after_meal"


class ReminderType(str, Enum):
    """Types of reminders"""
    CHECKUP = "checkup"
    MEDICINE = "medicine"
    APPOINTMENT = "appointment"


class AlertType(str, Enum):
    """Types of alerts"""
    EMERGENCY = "emergency"
    REMINDER = "reminder"
    REPORT = "report"


class AlertStatus(str, Enum):
    """Delivery status of an alert"""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class ScheduledDoseSnapshot:
    """A time of day at which a medicine dose is due on every active day"""
    id: int
    medicine_id: int
    time_of_day: Any  # datetime.time or "HH:MM"; may be malformed
    instruction: Optional[str] = None


@dataclass(frozen=True)
class DoseLogSnapshot:
    """Outcome of one scheduled dose on one calendar day"""
    scheduled_dose_id: int
    medicine_id: int
    date_recorded: datetime
    is_taken: bool
    id: Optional[int] = None
    taken_at: Optional[datetime] = None
    logged_by: str = "user"


@dataclass(frozen=True)
class MedicineSnapshot:
    """Medicine with its scheduled doses and dose log events"""
    id: int
    user_id: int
    name: str
    dosage: str
    start_date: date
    end_date: date
    is_active: bool = True
    purpose: str = ""
    doses: Tuple[ScheduledDoseSnapshot, ...] = ()
    logs: Tuple[DoseLogSnapshot, ...] = ()

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.dosage})" if self.dosage else self.name

    @property
    def display_timing_frequency(self) -> str:
        if not self.doses:
            return "No specific times"
        if len(self.doses) == 1:
            return "Once a day"
        return f"{len(self.doses)} times a day"


@dataclass(frozen=True)
class ReminderSnapshot:
    """Generic reminder with per-time-slot completion for the current day"""
    id: int
    user_id: int
    title: str
    start_date: date
    end_date: date
    times: Tuple[Any, ...] = ()
    reminder_type: ReminderType = ReminderType.CHECKUP
    is_active: bool = True
    completed_times: Tuple[datetime, ...] = ()
    last_reset_date: Optional[datetime] = None


@dataclass(frozen=True)
class VitalReadingSnapshot:
    """A single blood pressure or sugar reading"""
    id: int
    user_id: int
    vital_type: VitalType
    recorded_at: datetime
    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    sugar_level: Optional[float] = None
    sugar_context: Optional[SugarContext] = None

    def describe(self) -> str:
        if self.vital_type == VitalType.BP:
            return f"{self.systolic}/{self.diastolic} mmHg"
        context = self.sugar_context.value.replace("_", " ") if self.sugar_context else "unspecified"
        return f"{self.sugar_level:g} mg/dL ({context})"


@dataclass(frozen=True)
class AlertSettingsSnapshot:
    """Per-user alert thresholds and emergency contacts"""
    user_id: int
    min_systolic: int = engine_config.DEFAULT_MIN_SYSTOLIC
    max_systolic: int = engine_config.DEFAULT_MAX_SYSTOLIC
    min_diastolic: int = engine_config.DEFAULT_MIN_DIASTOLIC
    max_diastolic: int = engine_config.DEFAULT_MAX_DIASTOLIC
    fasting_sugar_min: int = engine_config.DEFAULT_FASTING_SUGAR_MIN
    fasting_sugar_max: int = engine_config.DEFAULT_FASTING_SUGAR_MAX
    after_meal_sugar_min: int = engine_config.DEFAULT_AFTER_MEAL_SUGAR_MIN
    after_meal_sugar_max: int = engine_config.DEFAULT_AFTER_MEAL_SUGAR_MAX
    emergency_contacts: Tuple[str, ...] = ()
    enable_emergency_alerts: bool = True
    enable_reminder_alerts: bool = True
    enable_report_alerts: bool = True

    @classmethod
    def defaults(cls, user_id: int) -> "AlertSettingsSnapshot":
        """Settings used when the user has not configured any"""
        return cls(user_id=user_id)

    @property
    def recipients(self) -> str:
        return ", ".join(self.emergency_contacts)


@dataclass(frozen=True)
class AlertKey:
    """Structured once-per-day identity of an alert condition"""
    user_id: int
    alert_type: AlertType
    condition_tag: str
    day: date


@dataclass(frozen=True)
class AlertRecord:
    """An alert already raised, or one the engine decided to raise"""
    user_id: int
    alert_type: AlertType
    subject: str
    content: str
    alert_day: date
    recipients: Tuple[str, ...] = ()
    condition_tag: Optional[str] = None
    status: AlertStatus = AlertStatus.PENDING
    id: Optional[int] = None
    sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> Optional[AlertKey]:
        if self.condition_tag is None:
            return None
        return AlertKey(
            user_id=self.user_id,
            alert_type=self.alert_type,
            condition_tag=self.condition_tag,
            day=self.alert_day
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "alert_type": self.alert_type.value,
            "condition_tag": self.condition_tag,
            "alert_day": self.alert_day.isoformat(),
            "recipients": list(self.recipients),
            "subject": self.subject,
            "content": self.content,
            "status": self.status.value,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "metadata": self.metadata
        }
