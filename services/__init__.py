"""
Services Module
Business logic layer for the Smart HealthMate application
"""

from services.user_service import UserService, user_service
from services.medicine_service import MedicineService, medicine_service
from services.adherence_service import AdherenceService, adherence_service
from services.reminder_service import ReminderService, reminder_service
from services.vitals_service import VitalsService, vitals_service
from services.alert_service import AlertService, alert_service
from services.snapshots import SqlDoseLogStore
from services.daily_job import run_daily_checks, run_for_all_users


__all__ = [
    # Service classes
    "UserService",
    "MedicineService",
    "AdherenceService",
    "ReminderService",
    "VitalsService",
    "AlertService",
    "SqlDoseLogStore",
    # Singleton instances
    "user_service",
    "medicine_service",
    "adherence_service",
    "reminder_service",
    "vitals_service",
    "alert_service",
    # Daily job
    "run_daily_checks",
    "run_for_all_users",
]
