"""
Database Models
SQLAlchemy ORM models for Smart HealthMate
"""

from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, ForeignKey, Text, Date, Time, Enum, Index, UniqueConstraint, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from database import Base
from config import TableNames, engine_config
from actions.snapshots import VitalType, SugarContext, ReminderType, AlertType, AlertStatus


# ==================== MODELS ====================

class User(Base):
    """Application user owning medicines, reminders, vitals and alerts"""
    __tablename__ = TableNames.USERS

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    last_daily_check = Column(DateTime)  # set by the daily job once missed doses are recorded

    # Relationships
    medicines = relationship("Medicine", back_populates="user", cascade="all, delete-orphan")
    reminders = relationship("Reminder", back_populates="user", cascade="all, delete-orphan")
    vital_readings = relationship("VitalReading", back_populates="user", cascade="all, delete-orphan")
    alert_settings = relationship("AlertSettings", back_populates="user", uselist=False, cascade="all, delete-orphan")
    alerts = relationship("Alert", back_populates="user", cascade="all, delete-orphan")


class Medicine(Base):
    """Medicine with an active treatment window"""
    __tablename__ = TableNames.MEDICINES

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey(f"{TableNames.USERS}.id"), nullable=False)

    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False, default="")
    purpose = Column(String(255), default="")
    timing_string = Column(String(255), default="")  # "9:00 AM, 9:00 PM"

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    inactive_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    user = relationship("User", back_populates="medicines")
    doses = relationship(
        "ScheduledDose",
        back_populates="medicine",
        cascade="all, delete-orphan",
        order_by="ScheduledDose.time_of_day"
    )
    dose_logs = relationship("DoseLogEvent", back_populates="medicine", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_medicines_user_active", "user_id", "is_active"),
    )


class ScheduledDose(Base):
    """Time of day at which a dose is due every active day"""
    __tablename__ = TableNames.SCHEDULED_DOSES

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey(f"{TableNames.MEDICINES}.id"), nullable=False)
    time_of_day = Column(String(10), nullable=False)  # "08:00", "20:00"
    instruction = Column(String(255))

    # Relationships
    medicine = relationship("Medicine", back_populates="doses")
    logs = relationship("DoseLogEvent", back_populates="scheduled_dose", cascade="all, delete-orphan")


class DoseLogEvent(Base):
    """Outcome of one scheduled dose on one calendar day"""
    __tablename__ = TableNames.DOSE_LOG_EVENTS

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey(f"{TableNames.MEDICINES}.id"), nullable=False)
    scheduled_dose_id = Column(Integer, ForeignKey(f"{TableNames.SCHEDULED_DOSES}.id"), nullable=False)

    date_recorded = Column(DateTime, nullable=False)  # always start of day
    is_taken = Column(Boolean, nullable=False, default=False)
    taken_at = Column(DateTime)

    logged_by = Column(String(50), default="user")  # "user", "system"
    logged_at = Column(DateTime, default=datetime.now)

    # Relationships
    medicine = relationship("Medicine", back_populates="dose_logs")
    scheduled_dose = relationship("ScheduledDose", back_populates="logs")

    __table_args__ = (
        UniqueConstraint("scheduled_dose_id", "date_recorded", name="uq_dose_log_per_day"),
        Index("ix_dose_logs_medicine_date", "medicine_id", "date_recorded"),
    )


class Reminder(Base):
    """Checkup reminder with daily-reset completion tracking"""
    __tablename__ = TableNames.REMINDERS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey(f"{TableNames.USERS}.id"), nullable=False)

    title = Column(String(255), nullable=False)
    reminder_type = Column(Enum(ReminderType), default=ReminderType.CHECKUP, nullable=False)
    times = Column(JSON, default=list, nullable=False)  # ["07:00", "19:00"]

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    completed_times = Column(JSON, default=list, nullable=False)  # ISO timestamps
    last_reset_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    user = relationship("User", back_populates="reminders")


class VitalReading(Base):
    """Blood pressure or sugar reading"""
    __tablename__ = TableNames.VITAL_READINGS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey(f"{TableNames.USERS}.id"), nullable=False)

    vital_type = Column(Enum(VitalType), nullable=False)
    reading_date = Column(Date, nullable=False)
    reading_time = Column(Time, nullable=False)

    # Blood pressure payload
    systolic = Column(Integer)
    diastolic = Column(Integer)

    # Sugar payload
    sugar_level = Column(Float)
    sugar_context = Column(Enum(SugarContext))

    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    user = relationship("User", back_populates="vital_readings")

    __table_args__ = (
        Index("ix_vitals_user_date", "user_id", "reading_date"),
    )


class AlertSettings(Base):
    """Per-user thresholds and emergency contacts"""
    __tablename__ = TableNames.ALERT_SETTINGS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey(f"{TableNames.USERS}.id"), unique=True, nullable=False)

    min_systolic = Column(Integer, default=engine_config.DEFAULT_MIN_SYSTOLIC, nullable=False)
    max_systolic = Column(Integer, default=engine_config.DEFAULT_MAX_SYSTOLIC, nullable=False)
    min_diastolic = Column(Integer, default=engine_config.DEFAULT_MIN_DIASTOLIC, nullable=False)
    max_diastolic = Column(Integer, default=engine_config.DEFAULT_MAX_DIASTOLIC, nullable=False)
    fasting_sugar_min = Column(Integer, default=engine_config.DEFAULT_FASTING_SUGAR_MIN, nullable=False)
    fasting_sugar_max = Column(Integer, default=engine_config.DEFAULT_FASTING_SUGAR_MAX, nullable=False)
    after_meal_sugar_min = Column(Integer, default=engine_config.DEFAULT_AFTER_MEAL_SUGAR_MIN, nullable=False)
    after_meal_sugar_max = Column(Integer, default=engine_config.DEFAULT_AFTER_MEAL_SUGAR_MAX, nullable=False)

    emergency_contacts = Column(JSON, default=list, nullable=False)

    enable_emergency_alerts = Column(Boolean, default=True, nullable=False)
    enable_reminder_alerts = Column(Boolean, default=True, nullable=False)
    enable_report_alerts = Column(Boolean, default=True, nullable=False)

    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    user = relationship("User", back_populates="alert_settings")


class Alert(Base):
    """Append-only log of alerts raised for a user"""
    __tablename__ = TableNames.ALERTS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey(f"{TableNames.USERS}.id"), nullable=False)

    alert_type = Column(Enum(AlertType), nullable=False)
    condition_tag = Column(String(50))  # NULL for alerts that are never de-duplicated
    alert_day = Column(Date, nullable=False)

    recipients = Column(Text, nullable=False)  # comma separated
    subject = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)

    status = Column(Enum(AlertStatus), default=AlertStatus.PENDING, nullable=False)
    sent_at = Column(DateTime)
    error_message = Column(Text)

    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    user = relationship("User", back_populates="alerts")

    __table_args__ = (
        UniqueConstraint("user_id", "alert_type", "condition_tag", "alert_day", name="uq_alert_per_condition_day"),
        Index("ix_alerts_user_day", "user_id", "alert_day"),
    )
