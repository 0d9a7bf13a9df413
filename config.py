"""
Configuration management for Smart HealthMate
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Smart HealthMate"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./healthmate.db"
    DATABASE_ECHO: bool = False

    # Email delivery (external HTTP endpoint)
    EMAIL_API_URL: Optional[str] = None
    EMAIL_API_KEY: Optional[str] = None
    EMAIL_SENDER: str = "alerts@smarthealthmate.app"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # Daily background checks
    ENABLE_SCHEDULER: bool = True
    DAILY_JOB_HOUR: int = 21
    DAILY_JOB_MINUTE: int = 0

    # Compare after-meal sugar readings against the after-meal range.
    # Off by default: readings are checked against the fasting range.
    USE_CONTEXT_SUGAR_THRESHOLDS: bool = False

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class EngineConfig:
    """Constants used by the adherence and alert engine"""

    # Default alert thresholds (used when a user has no AlertSettings row)
    DEFAULT_MIN_SYSTOLIC: int = 90
    DEFAULT_MAX_SYSTOLIC: int = 120
    DEFAULT_MIN_DIASTOLIC: int = 60
    DEFAULT_MAX_DIASTOLIC: int = 80
    DEFAULT_FASTING_SUGAR_MIN: int = 70
    DEFAULT_FASTING_SUGAR_MAX: int = 100
    DEFAULT_AFTER_MEAL_SUGAR_MIN: int = 70
    DEFAULT_AFTER_MEAL_SUGAR_MAX: int = 140

    # Period windows, in days back from "now" (today included)
    WEEKLY_OFFSET_DAYS: int = 6
    MONTHLY_OFFSET_DAYS: int = 29

    # Human-readable subject markers
    BP_ALERT_MARKER: str = "BP Out of Range"
    SUGAR_ALERT_MARKER: str = "Sugar Out of Range"
    MISSED_DOSE_REPORT_MARKER: str = "Missed Medicine Report"
    MISSED_REMINDER_REPORT_MARKER: str = "Missed Reminder Report"
    TEST_ALERT_MARKER: str = "System Check"

    # Structured de-duplication tags
    TAG_BP_OUT_OF_RANGE: str = "bp_out_of_range"
    TAG_SUGAR_OUT_OF_RANGE: str = "sugar_out_of_range"
    TAG_MISSED_DOSES: str = "missed_doses"
    TAG_MISSED_REMINDERS: str = "missed_reminders"

    # Display format for times of day in alert bodies
    DISPLAY_TIME_FORMAT: str = "%I:%M %p"


# Database table names
class TableNames:
    USERS = "users"
    MEDICINES = "medicines"
    SCHEDULED_DOSES = "scheduled_doses"
    DOSE_LOG_EVENTS = "dose_log_events"
    REMINDERS = "reminders"
    VITAL_READINGS = "vital_readings"
    ALERT_SETTINGS = "alert_settings"
    ALERTS = "alerts"


settings = get_settings()
engine_config = EngineConfig()
