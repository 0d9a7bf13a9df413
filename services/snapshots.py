"""
Snapshot Conversion
Builds engine snapshots from ORM rows and persists engine decisions back
"""

import logging
from typing import List, Optional
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
from actions.dose_reconciler import DoseLogStore
from actions.snapshots import (
    AlertRecord,
    AlertSettingsSnapshot,
    DoseLogSnapshot,
    MedicineSnapshot,
    ReminderSnapshot,
    ScheduledDoseSnapshot,
    VitalReadingSnapshot,
)


logger = logging.getLogger(__name__)


def dose_log_snapshot(row: models.DoseLogEvent) -> DoseLogSnapshot:
    return DoseLogSnapshot(
        id=row.id,
        scheduled_dose_id=row.scheduled_dose_id,
        medicine_id=row.medicine_id,
        date_recorded=row.date_recorded,
        is_taken=bool(row.is_taken),
        taken_at=row.taken_at,
        logged_by=row.logged_by or "user"
    )


def medicine_snapshot(row: models.Medicine) -> MedicineSnapshot:
    return MedicineSnapshot(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        dosage=row.dosage or "",
        purpose=row.purpose or "",
        start_date=row.start_date,
        end_date=row.end_date,
        is_active=bool(row.is_active),
        doses=tuple(
            ScheduledDoseSnapshot(
                id=dose.id,
                medicine_id=dose.medicine_id,
                time_of_day=dose.time_of_day,
                instruction=dose.instruction
            )
            for dose in row.doses
        ),
        logs=tuple(dose_log_snapshot(log) for log in row.dose_logs)
    )


def _parse_completed(values) -> tuple:
    parsed = []
    for value in values or []:
        try:
            parsed.append(datetime.fromisoformat(value))
        except (TypeError, ValueError):
            logger.debug(f"Skipping malformed completion timestamp {value!r}")
    return tuple(parsed)


def reminder_snapshot(row: models.Reminder) -> ReminderSnapshot:
    return ReminderSnapshot(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        reminder_type=row.reminder_type,
        times=tuple(row.times or ()),
        start_date=row.start_date,
        end_date=row.end_date,
        is_active=bool(row.is_active),
        completed_times=_parse_completed(row.completed_times),
        last_reset_date=row.last_reset_date
    )


def apply_reminder_snapshot(row: models.Reminder, snapshot: ReminderSnapshot) -> None:
    """Write completion state decided by the engine back onto the row"""
    row.completed_times = [c.isoformat() for c in snapshot.completed_times]
    row.last_reset_date = snapshot.last_reset_date


def vital_snapshot(row: models.VitalReading) -> VitalReadingSnapshot:
    return VitalReadingSnapshot(
        id=row.id,
        user_id=row.user_id,
        vital_type=row.vital_type,
        recorded_at=datetime.combine(row.reading_date, row.reading_time),
        systolic=row.systolic,
        diastolic=row.diastolic,
        sugar_level=row.sugar_level,
        sugar_context=row.sugar_context
    )


def settings_snapshot(row: Optional[models.AlertSettings], user_id: int) -> AlertSettingsSnapshot:
    if row is None:
        return AlertSettingsSnapshot.defaults(user_id)
    return AlertSettingsSnapshot(
        user_id=row.user_id,
        min_systolic=row.min_systolic,
        max_systolic=row.max_systolic,
        min_diastolic=row.min_diastolic,
        max_diastolic=row.max_diastolic,
        fasting_sugar_min=row.fasting_sugar_min,
        fasting_sugar_max=row.fasting_sugar_max,
        after_meal_sugar_min=row.after_meal_sugar_min,
        after_meal_sugar_max=row.after_meal_sugar_max,
        emergency_contacts=tuple(row.emergency_contacts or ()),
        enable_emergency_alerts=bool(row.enable_emergency_alerts),
        enable_reminder_alerts=bool(row.enable_reminder_alerts),
        enable_report_alerts=bool(row.enable_report_alerts)
    )


def alert_record(row: models.Alert) -> AlertRecord:
    recipients = tuple(r.strip() for r in (row.recipients or "").split(",") if r.strip())
    return AlertRecord(
        id=row.id,
        user_id=row.user_id,
        alert_type=row.alert_type,
        condition_tag=row.condition_tag,
        alert_day=row.alert_day,
        recipients=recipients,
        subject=row.subject,
        content=row.content,
        status=row.status,
        sent_at=row.sent_at,
        created_at=row.created_at
    )


class SqlDoseLogStore(DoseLogStore):
    """
    DoseLogStore backed by the dose_log_events table.

    The (scheduled_dose_id, date_recorded) unique constraint backs the
    lookup-before-insert done by the reconciler. A concurrent insert that
    loses the race is resolved by re-reading the winning row.
    """

    def __init__(self, session: Session):
        self.session = session

    def _row(self, scheduled_dose_id: int, day: datetime) -> Optional[models.DoseLogEvent]:
        return self.session.query(models.DoseLogEvent).filter(
            models.DoseLogEvent.scheduled_dose_id == scheduled_dose_id,
            models.DoseLogEvent.date_recorded == day
        ).first()

    def find_dose_event(self, scheduled_dose_id: int, day: datetime) -> Optional[DoseLogSnapshot]:
        row = self._row(scheduled_dose_id, day)
        return dose_log_snapshot(row) if row else None

    def insert_dose_event(self, event: DoseLogSnapshot) -> DoseLogSnapshot:
        row = models.DoseLogEvent(
            medicine_id=event.medicine_id,
            scheduled_dose_id=event.scheduled_dose_id,
            date_recorded=event.date_recorded,
            is_taken=event.is_taken,
            taken_at=event.taken_at,
            logged_by=event.logged_by
        )
        try:
            with self.session.begin_nested():
                self.session.add(row)
        except IntegrityError:
            existing = self._row(event.scheduled_dose_id, event.date_recorded)
            if existing is None:
                raise
            logger.warning(
                f"Dose event for dose {event.scheduled_dose_id} on "
                f"{event.date_recorded.date().isoformat()} already recorded"
            )
            return dose_log_snapshot(existing)
        return dose_log_snapshot(row)

    def update_dose_event(
        self,
        event: DoseLogSnapshot,
        is_taken: bool,
        taken_at: Optional[datetime]
    ) -> DoseLogSnapshot:
        row = self.session.get(models.DoseLogEvent, event.id)
        if row is None:
            raise ValueError(f"Dose event {event.id} not found")
        row.is_taken = is_taken
        row.taken_at = taken_at
        self.session.flush()
        return dose_log_snapshot(row)

    def delete_dose_event(self, event: DoseLogSnapshot) -> None:
        row = self.session.get(models.DoseLogEvent, event.id)
        if row is not None:
            self.session.delete(row)
            self.session.flush()


def load_medicines(session: Session, user_id: int, active_only: bool = False) -> List[models.Medicine]:
    query = session.query(models.Medicine).filter(models.Medicine.user_id == user_id)
    if active_only:
        query = query.filter(models.Medicine.is_active == True)  # noqa: E712
    return query.order_by(models.Medicine.id).all()


def load_readings(session: Session, user_id: int, day: Optional[date] = None) -> List[models.VitalReading]:
    query = session.query(models.VitalReading).filter(models.VitalReading.user_id == user_id)
    if day is not None:
        query = query.filter(models.VitalReading.reading_date == day)
    return query.order_by(
        models.VitalReading.reading_date,
        models.VitalReading.reading_time,
        models.VitalReading.id
    ).all()


def load_alerts(session: Session, user_id: int, day: Optional[date] = None) -> List[models.Alert]:
    query = session.query(models.Alert).filter(models.Alert.user_id == user_id)
    if day is not None:
        query = query.filter(models.Alert.alert_day == day)
    return query.order_by(models.Alert.created_at.desc(), models.Alert.id.desc()).all()
