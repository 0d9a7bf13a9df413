"""
Alert Engine
Evaluates vital readings against per-user thresholds and composes emergency alerts
"""

import logging
from typing import List, Dict, Any, Iterable, Optional, Sequence, Set, Tuple
from datetime import date, datetime

from config import engine_config, settings as app_settings
from actions.snapshots import (
    AlertKey,
    AlertRecord,
    AlertSettingsSnapshot,
    AlertStatus,
    AlertType,
    SugarContext,
    VitalReadingSnapshot,
    VitalType,
)


logger = logging.getLogger(__name__)


# Recommended actions included in emergency alert bodies
RECOMMENDED_ACTIONS = {
    (VitalType.BP, "high"): [
        "Ask the patient to sit and rest quietly, then re-check in 5 minutes",
        "Confirm blood pressure medicines were taken as prescribed",
        "Contact the doctor if the reading stays high or symptoms appear"
    ],
    (VitalType.BP, "low"): [
        "Ask the patient to lie down and raise their legs",
        "Offer water if they are able to drink",
        "Contact the doctor if dizziness or fainting occurs"
    ],
    (VitalType.SUGAR, "high"): [
        "Re-check sugar level in 15 minutes",
        "Encourage water and avoid sugary food",
        "Contact the doctor if levels remain elevated"
    ],
    (VitalType.SUGAR, "low"): [
        "Give 15g of fast-acting sugar such as juice or glucose tablets",
        "Re-check sugar level after 15 minutes",
        "Seek emergency help if the patient is confused or unconscious"
    ]
}


def classify(value: Optional[float], low: float, high: float) -> Optional[str]:
    """'low', 'high' or 'normal' against an inclusive [low, high] range"""
    if value is None:
        return None
    if value < low:
        return "low"
    if value > high:
        return "high"
    return "normal"


def latest_reading(
    readings: Iterable[VitalReadingSnapshot],
    vital_type: VitalType,
    day: date
) -> Optional[VitalReadingSnapshot]:
    """Most recent reading of the type on the day; ties keep the later-listed reading"""
    if isinstance(day, datetime):
        day = day.date()
    latest = None
    for reading in readings:
        if reading.vital_type != vital_type or reading.recorded_at.date() != day:
            continue
        if latest is None or reading.recorded_at >= latest.recorded_at:
            latest = reading
    return latest


def bp_status(reading: VitalReadingSnapshot, settings: AlertSettingsSnapshot) -> str:
    """Worst of the systolic and diastolic classifications"""
    statuses = {
        classify(reading.systolic, settings.min_systolic, settings.max_systolic),
        classify(reading.diastolic, settings.min_diastolic, settings.max_diastolic)
    }
    if "high" in statuses:
        return "high"
    if "low" in statuses:
        return "low"
    return "normal"


def bp_out_of_range(reading: VitalReadingSnapshot, settings: AlertSettingsSnapshot) -> bool:
    return bp_status(reading, settings) != "normal"


def sugar_limits(
    reading: VitalReadingSnapshot,
    settings: AlertSettingsSnapshot,
    use_context_thresholds: bool = False
) -> Tuple[int, int]:
    """
    Range a sugar reading is compared against.

    The fasting range applies to every reading unless context thresholds
    are enabled, in which case after-meal readings use the after-meal range.
    """
    if reading.sugar_context == SugarContext.AFTER_MEAL:
        if use_context_thresholds:
            return settings.after_meal_sugar_min, settings.after_meal_sugar_max
        logger.debug(
            f"Comparing after-meal reading {reading.id} against fasting limits "
            f"{settings.fasting_sugar_min}-{settings.fasting_sugar_max}"
        )
    return settings.fasting_sugar_min, settings.fasting_sugar_max


def sugar_status(
    reading: VitalReadingSnapshot,
    settings: AlertSettingsSnapshot,
    use_context_thresholds: bool = False
) -> Optional[str]:
    low, high = sugar_limits(reading, settings, use_context_thresholds)
    return classify(reading.sugar_level, low, high)


def sugar_out_of_range(
    reading: VitalReadingSnapshot,
    settings: AlertSettingsSnapshot,
    use_context_thresholds: bool = False
) -> bool:
    return sugar_status(reading, settings, use_context_thresholds) in ("low", "high")


class AlertEngine:
    """
    Threshold alert evaluator.

    Raises at most one emergency alert per vital type per user per day. An
    alert already raised today is recognized by its structured key, or by
    the subject marker for alerts recorded without a condition tag.
    """

    def __init__(self, use_context_sugar_thresholds: bool = False):
        self.use_context_sugar_thresholds = use_context_sugar_thresholds

    def _raised_today(
        self,
        existing_alerts: Iterable[AlertRecord],
        user_id: int,
        day: date
    ) -> Tuple[Set[AlertKey], List[str]]:
        keys = set()
        subjects = []
        for alert in existing_alerts:
            if alert.user_id != user_id or alert.alert_day != day:
                continue
            if alert.key is not None:
                keys.add(alert.key)
            if alert.alert_type == AlertType.EMERGENCY:
                subjects.append(alert.subject)
        return keys, subjects

    def _compose_emergency(
        self,
        reading: VitalReadingSnapshot,
        settings: AlertSettingsSnapshot,
        marker: str,
        tag: str,
        status: str,
        normal_range: str,
        now: datetime,
        patient_name: str
    ) -> AlertRecord:
        label = "Blood Pressure" if reading.vital_type == VitalType.BP else "Blood Sugar"
        actions = RECOMMENDED_ACTIONS.get((reading.vital_type, status), [])

        lines = [
            f"Emergency health alert for {patient_name}.",
            "",
            f"{label} reading is {status.upper()}: {reading.describe()}",
            f"Normal range: {normal_range}",
            f"Recorded at: {reading.recorded_at.strftime('%Y-%m-%d %I:%M %p')}",
            "",
            "Recommended actions:"
        ]
        lines.extend(f"- {action}" for action in actions)
        lines.extend(["", f"Sent by Smart HealthMate on {now.strftime('%Y-%m-%d %I:%M %p')}"])

        return AlertRecord(
            user_id=settings.user_id,
            alert_type=AlertType.EMERGENCY,
            subject=f"EMERGENCY: {marker} - {patient_name}",
            content="\n".join(lines),
            alert_day=now.date(),
            recipients=tuple(settings.emergency_contacts),
            condition_tag=tag,
            status=AlertStatus.PENDING,
            created_at=now,
            metadata={"reading_id": reading.id, "status": status}
        )

    def evaluate(
        self,
        readings: Sequence[VitalReadingSnapshot],
        settings: AlertSettingsSnapshot,
        existing_alerts: Iterable[AlertRecord],
        now: datetime,
        patient_name: str = "Patient"
    ) -> List[AlertRecord]:
        """
        Alerts to raise for today's latest BP and sugar readings.

        Safe to call repeatedly within a day: conditions already raised
        today produce nothing.
        """
        if not settings.enable_emergency_alerts:
            logger.info(f"Emergency alerts disabled for user {settings.user_id}")
            return []
        if not settings.emergency_contacts:
            logger.warning(f"No emergency contacts for user {settings.user_id}, skipping threshold alerts")
            return []

        today = now.date()
        keys, subjects = self._raised_today(existing_alerts, settings.user_id, today)
        alerts = []

        bp = latest_reading(readings, VitalType.BP, today)
        if bp is not None and bp_out_of_range(bp, settings):
            key = AlertKey(settings.user_id, AlertType.EMERGENCY, engine_config.TAG_BP_OUT_OF_RANGE, today)
            if key in keys or any(engine_config.BP_ALERT_MARKER in s for s in subjects):
                logger.debug(f"BP alert already raised today for user {settings.user_id}")
            else:
                alerts.append(self._compose_emergency(
                    bp,
                    settings,
                    marker=engine_config.BP_ALERT_MARKER,
                    tag=engine_config.TAG_BP_OUT_OF_RANGE,
                    status=bp_status(bp, settings),
                    normal_range=(
                        f"{settings.min_systolic}-{settings.max_systolic}/"
                        f"{settings.min_diastolic}-{settings.max_diastolic} mmHg"
                    ),
                    now=now,
                    patient_name=patient_name
                ))

        sugar = latest_reading(readings, VitalType.SUGAR, today)
        if sugar is not None and sugar_out_of_range(sugar, settings, self.use_context_sugar_thresholds):
            key = AlertKey(settings.user_id, AlertType.EMERGENCY, engine_config.TAG_SUGAR_OUT_OF_RANGE, today)
            if key in keys or any(engine_config.SUGAR_ALERT_MARKER in s for s in subjects):
                logger.debug(f"Sugar alert already raised today for user {settings.user_id}")
            else:
                low, high = sugar_limits(sugar, settings, self.use_context_sugar_thresholds)
                alerts.append(self._compose_emergency(
                    sugar,
                    settings,
                    marker=engine_config.SUGAR_ALERT_MARKER,
                    tag=engine_config.TAG_SUGAR_OUT_OF_RANGE,
                    status=sugar_status(sugar, settings, self.use_context_sugar_thresholds),
                    normal_range=f"{low}-{high} mg/dL",
                    now=now,
                    patient_name=patient_name
                ))

        for alert in alerts:
            logger.info(f"Raising alert '{alert.subject}' for user {alert.user_id}")
        return alerts

    def compose_test_alert(
        self,
        settings: AlertSettingsSnapshot,
        now: datetime,
        patient_name: str = "Patient"
    ) -> AlertRecord:
        """Emergency-type alert used to verify delivery; never de-duplicated"""
        if not settings.emergency_contacts:
            raise ValueError("Add at least one emergency contact before sending a test alert")

        content = "\n".join([
            f"This is a test alert from Smart HealthMate for {patient_name}.",
            "",
            "If you received this message, emergency alerts will reach you.",
            f"Sent at: {now.strftime('%Y-%m-%d %I:%M %p')}"
        ])
        return AlertRecord(
            user_id=settings.user_id,
            alert_type=AlertType.EMERGENCY,
            subject=f"{engine_config.TEST_ALERT_MARKER}: Test Alert - {patient_name}",
            content=content,
            alert_day=now.date(),
            recipients=tuple(settings.emergency_contacts),
            condition_tag=None,
            created_at=now
        )

    def stats(self, alerts: Iterable[AlertRecord]) -> Dict[str, Any]:
        """Totals by status and by type"""
        by_status = {s.value: 0 for s in AlertStatus}
        by_type = {t.value: 0 for t in AlertType}
        total = 0
        last_sent_at = None

        for alert in alerts:
            total += 1
            by_status[alert.status.value] += 1
            by_type[alert.alert_type.value] += 1
            if alert.sent_at and (last_sent_at is None or alert.sent_at > last_sent_at):
                last_sent_at = alert.sent_at

        return {
            "total": total,
            "by_status": by_status,
            "by_type": by_type,
            "last_sent_at": last_sent_at.isoformat() if last_sent_at else None
        }

    def validate_contact(self, email: str, contacts: Iterable[str]) -> str:
        """Trimmed contact email; raises ValueError when invalid or already present"""
        email = (email or "").strip()
        if not email:
            raise ValueError("Contact email is required")
        if "@" not in email:
            raise ValueError(f"Invalid contact email: {email}")
        if email.lower() in {c.strip().lower() for c in contacts}:
            raise ValueError(f"Contact {email} already exists")
        return email


# Singleton instance
alert_engine = AlertEngine(use_context_sugar_thresholds=app_settings.USE_CONTEXT_SUGAR_THRESHOLDS)
