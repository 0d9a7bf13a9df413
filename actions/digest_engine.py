"""
Digest Engine
Composes the once-per-day missed dose and missed reminder reports
"""

import logging
from typing import List, Iterable, Optional
from datetime import datetime

from config import engine_config
from actions.dose_reconciler import dose_reconciler
from actions.periods import format_time_of_day
from actions.reminder_engine import reminder_engine
from actions.snapshots import (
    AlertKey,
    AlertRecord,
    AlertSettingsSnapshot,
    AlertStatus,
    AlertType,
    MedicineSnapshot,
    ReminderSnapshot,
)


logger = logging.getLogger(__name__)


def _already_sent(
    existing_alerts: Iterable[AlertRecord],
    key: AlertKey,
    marker: str
) -> bool:
    for alert in existing_alerts:
        if alert.key == key:
            return True
        # Reports recorded without a tag are recognized by their subject
        if (
            alert.condition_tag is None
            and alert.user_id == key.user_id
            and alert.alert_type == key.alert_type
            and alert.alert_day == key.day
            and marker in alert.subject
        ):
            return True
    return False


def _should_compose(
    settings: AlertSettingsSnapshot,
    existing_alerts: Iterable[AlertRecord],
    key: AlertKey,
    marker: str,
    enabled: bool
) -> bool:
    if not enabled:
        logger.info(f"{marker} disabled for user {settings.user_id}")
        return False
    if not settings.emergency_contacts:
        logger.warning(f"No emergency contacts for user {settings.user_id}, skipping {marker}")
        return False
    if _already_sent(existing_alerts, key, marker):
        logger.debug(f"{marker} already sent today for user {settings.user_id}")
        return False
    return True


def _report(
    settings: AlertSettingsSnapshot,
    alert_type: AlertType,
    tag: str,
    marker: str,
    heading: str,
    lines: List[str],
    now: datetime,
    patient_name: str
) -> AlertRecord:
    content = [
        f"{heading} for {patient_name} on {now.strftime('%A, %d %B %Y')}:",
        ""
    ]
    content.extend(f"- {line}" for line in lines)
    content.extend(["", "Please check in with the patient."])

    return AlertRecord(
        user_id=settings.user_id,
        alert_type=alert_type,
        subject=f"{marker} - {patient_name}",
        content="\n".join(content),
        alert_day=now.date(),
        recipients=tuple(settings.emergency_contacts),
        condition_tag=tag,
        status=AlertStatus.PENDING,
        created_at=now,
        metadata={"items": len(lines)}
    )


def missed_dose_lines(medicines: Iterable[MedicineSnapshot], now: datetime) -> List[str]:
    """One line per medicine with missed doses today, e.g. "Metformin (500mg) - missed at 08:00 AM" """
    lines = []
    for medicine in medicines:
        missed = dose_reconciler.missed(medicine, now, now)
        if not missed:
            continue
        times = ", ".join(format_time_of_day(r.due.scheduled_at) for r in missed)
        lines.append(f"{medicine.display_name} - missed at {times}")
    return lines


def missed_reminder_lines(reminders: Iterable[ReminderSnapshot], now: datetime) -> List[str]:
    lines = []
    for reminder in reminders:
        missed = reminder_engine.missed_slots(reminder, now)
        if not missed:
            continue
        times = ", ".join(format_time_of_day(slot.time_of_day) for slot in missed)
        lines.append(f"{reminder.title} - missed at {times}")
    return lines


def compose_missed_dose_digest(
    user_id: int,
    medicines: Iterable[MedicineSnapshot],
    settings: AlertSettingsSnapshot,
    existing_alerts: Iterable[AlertRecord],
    now: datetime,
    patient_name: str = "Patient"
) -> Optional[AlertRecord]:
    """
    Report of today's missed doses, at most once per user per day.

    Returns None when the report was already sent today, when report alerts
    are disabled, when there are no contacts or when nothing was missed.
    """
    existing_alerts = list(existing_alerts)
    key = AlertKey(user_id, AlertType.REPORT, engine_config.TAG_MISSED_DOSES, now.date())
    marker = engine_config.MISSED_DOSE_REPORT_MARKER
    if not _should_compose(settings, existing_alerts, key, marker, settings.enable_report_alerts):
        return None

    lines = missed_dose_lines(medicines, now)
    if not lines:
        return None

    logger.info(f"Composed {marker} for user {user_id} with {len(lines)} medicine(s)")
    return _report(
        settings,
        AlertType.REPORT,
        tag=engine_config.TAG_MISSED_DOSES,
        marker=marker,
        heading="Missed medicines",
        lines=lines,
        now=now,
        patient_name=patient_name
    )


def compose_missed_reminder_digest(
    user_id: int,
    reminders: Iterable[ReminderSnapshot],
    settings: AlertSettingsSnapshot,
    existing_alerts: Iterable[AlertRecord],
    now: datetime,
    patient_name: str = "Patient"
) -> Optional[AlertRecord]:
    """Report of today's missed reminder slots, sent independently of the dose report"""
    existing_alerts = list(existing_alerts)
    key = AlertKey(user_id, AlertType.REMINDER, engine_config.TAG_MISSED_REMINDERS, now.date())
    marker = engine_config.MISSED_REMINDER_REPORT_MARKER
    if not _should_compose(settings, existing_alerts, key, marker, settings.enable_reminder_alerts):
        return None

    lines = missed_reminder_lines(reminders, now)
    if not lines:
        return None

    logger.info(f"Composed {marker} for user {user_id} with {len(lines)} reminder(s)")
    return _report(
        settings,
        AlertType.REMINDER,
        tag=engine_config.TAG_MISSED_REMINDERS,
        marker=marker,
        heading="Missed checkups",
        lines=lines,
        now=now,
        patient_name=patient_name
    )
