"""
Alert Service
Alert settings, threshold evaluation, daily digests and alert delivery
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime, date
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db_context
import models
from actions.alert_engine import alert_engine
from actions.digest_engine import compose_missed_dose_digest, compose_missed_reminder_digest
from actions.snapshots import AlertRecord, AlertStatus, AlertType
from services.snapshots import (
    alert_record,
    load_alerts,
    load_medicines,
    load_readings,
    medicine_snapshot,
    reminder_snapshot,
    settings_snapshot,
    vital_snapshot,
)
from services.user_service import require_user
from tools.notification_service import NotificationService, notification_service


logger = logging.getLogger(__name__)


THRESHOLD_PAIRS = [
    ("min_systolic", "max_systolic"),
    ("min_diastolic", "max_diastolic"),
    ("fasting_sugar_min", "fasting_sugar_max"),
    ("after_meal_sugar_min", "after_meal_sugar_max"),
]

SETTINGS_FIELDS = [field for pair in THRESHOLD_PAIRS for field in pair] + [
    "enable_emergency_alerts",
    "enable_reminder_alerts",
    "enable_report_alerts",
]


class AlertService:
    """
    Service for alert-related operations

    Alerts are inserted before delivery. The per-day unique key on alerts
    turns a duplicate insert into "already raised today", and a failed
    delivery only marks the alert failed.
    """

    def __init__(self, notifier: Optional[NotificationService] = None):
        self.notifier = notifier or notification_service

    def _settings_row(self, session: Session, user_id: int) -> models.AlertSettings:
        user = require_user(session, user_id)
        if user.alert_settings is None:
            user.alert_settings = models.AlertSettings(user_id=user_id, emergency_contacts=[])
            session.commit()
            logger.info(f"Created default alert settings for user {user_id}")
        return user.alert_settings

    async def get_or_create_settings(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> models.AlertSettings:
        """Alert settings of the user, created with default thresholds when missing"""
        def _get(session: Session) -> models.AlertSettings:
            row = self._settings_row(session, user_id)
            session.refresh(row)
            return row

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def update_settings(
        self,
        user_id: int,
        db: Optional[Session] = None,
        **updates
    ) -> models.AlertSettings:
        """Update thresholds and enable flags; every min must stay below its max"""
        def _update(session: Session) -> models.AlertSettings:
            row = self._settings_row(session, user_id)

            for field in SETTINGS_FIELDS:
                if updates.get(field) is not None:
                    setattr(row, field, updates[field])

            for low, high in THRESHOLD_PAIRS:
                if getattr(row, low) >= getattr(row, high):
                    session.rollback()
                    raise ValueError(f"{low} must be lower than {high}")

            session.commit()
            session.refresh(row)

            logger.info(f"Updated alert settings for user {user_id}")
            return row

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def add_contact(
        self,
        user_id: int,
        email: str,
        db: Optional[Session] = None
    ) -> List[str]:
        def _add(session: Session) -> List[str]:
            row = self._settings_row(session, user_id)
            contacts = list(row.emergency_contacts or [])
            contacts.append(alert_engine.validate_contact(email, contacts))
            row.emergency_contacts = contacts
            session.commit()

            logger.info(f"Added emergency contact for user {user_id}")
            return contacts

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def remove_contact(
        self,
        user_id: int,
        email: str,
        db: Optional[Session] = None
    ) -> List[str]:
        def _remove(session: Session) -> List[str]:
            row = self._settings_row(session, user_id)
            target = (email or "").strip().lower()
            contacts = list(row.emergency_contacts or [])
            remaining = [c for c in contacts if c.strip().lower() != target]
            if len(remaining) == len(contacts):
                raise ValueError(f"Contact {email} not found")
            row.emergency_contacts = remaining
            session.commit()

            logger.info(f"Removed emergency contact for user {user_id}")
            return remaining

        if db:
            return _remove(db)

        with get_db_context() as session:
            return _remove(session)

    async def list_alerts(
        self,
        user_id: int,
        day: Optional[date] = None,
        alert_type: Optional[AlertType] = None,
        limit: int = 100,
        db: Optional[Session] = None
    ) -> List[models.Alert]:
        """Alerts newest first"""
        def _list(session: Session) -> List[models.Alert]:
            alerts = load_alerts(session, user_id, day)
            if alert_type is not None:
                alerts = [a for a in alerts if a.alert_type == AlertType(alert_type)]
            return alerts[:limit]

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def get_stats(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        def _stats(session: Session) -> Dict[str, Any]:
            require_user(session, user_id)
            return alert_engine.stats(alert_record(row) for row in load_alerts(session, user_id))

        if db:
            return _stats(db)

        with get_db_context() as session:
            return _stats(session)

    def _insert(self, session: Session, record: AlertRecord) -> Optional[models.Alert]:
        row = models.Alert(
            user_id=record.user_id,
            alert_type=record.alert_type,
            condition_tag=record.condition_tag,
            alert_day=record.alert_day,
            recipients=", ".join(record.recipients),
            subject=record.subject,
            content=record.content,
            status=AlertStatus.PENDING,
            created_at=record.created_at or datetime.now()
        )
        try:
            with session.begin_nested():
                session.add(row)
        except IntegrityError:
            logger.warning(
                f"Alert '{record.condition_tag}' already raised on {record.alert_day} "
                f"for user {record.user_id}"
            )
            return None
        return row

    async def _dispatch(self, session: Session, records: List[AlertRecord], now: datetime) -> List[AlertRecord]:
        """Insert composed alerts, then deliver each and record the outcome"""
        rows = [row for row in (self._insert(session, r) for r in records) if row is not None]
        session.commit()

        for row in rows:
            recipients = [r.strip() for r in row.recipients.split(",") if r.strip()]
            result = await self.notifier.send_email(recipients, row.subject, row.content)
            if result.success:
                row.status = AlertStatus.SENT
                row.sent_at = result.delivered_at or now
                logger.info(f"Alert {row.id} sent to {len(recipients)} contact(s)")
            else:
                row.status = AlertStatus.FAILED
                row.error_message = result.error
                logger.error(f"Alert {row.id} delivery failed: {result.error}")
            session.commit()

        return [alert_record(row) for row in rows]

    async def evaluate_thresholds(
        self,
        user_id: int,
        now: datetime,
        db: Optional[Session] = None
    ) -> List[AlertRecord]:
        """Raise and send emergency alerts for today's out-of-range readings"""
        async def _evaluate(session: Session) -> List[AlertRecord]:
            user = require_user(session, user_id)
            today = now.date()
            readings = [vital_snapshot(row) for row in load_readings(session, user_id, today)]
            existing = [alert_record(row) for row in load_alerts(session, user_id, today)]

            records = alert_engine.evaluate(
                readings,
                settings_snapshot(user.alert_settings, user_id),
                existing,
                now,
                patient_name=user.name
            )
            return await self._dispatch(session, records, now)

        if db:
            return await _evaluate(db)

        with get_db_context() as session:
            return await _evaluate(session)

    async def send_daily_digests(
        self,
        user_id: int,
        now: datetime,
        db: Optional[Session] = None
    ) -> List[AlertRecord]:
        """Compose and send today's missed dose and missed reminder reports"""
        async def _digest(session: Session) -> List[AlertRecord]:
            user = require_user(session, user_id)
            settings = settings_snapshot(user.alert_settings, user_id)
            existing = [alert_record(row) for row in load_alerts(session, user_id, now.date())]

            medicines = [medicine_snapshot(row) for row in load_medicines(session, user_id, active_only=True)]
            reminders = [
                reminder_snapshot(row)
                for row in session.query(models.Reminder).filter(models.Reminder.user_id == user_id).all()
            ]

            records = [
                record for record in (
                    compose_missed_dose_digest(user_id, medicines, settings, existing, now, user.name),
                    compose_missed_reminder_digest(user_id, reminders, settings, existing, now, user.name)
                )
                if record is not None
            ]
            return await self._dispatch(session, records, now)

        if db:
            return await _digest(db)

        with get_db_context() as session:
            return await _digest(session)

    async def send_test_alert(
        self,
        user_id: int,
        now: datetime,
        db: Optional[Session] = None
    ) -> AlertRecord:
        async def _test(session: Session) -> AlertRecord:
            user = require_user(session, user_id)
            record = alert_engine.compose_test_alert(
                settings_snapshot(user.alert_settings, user_id), now, patient_name=user.name
            )
            sent = await self._dispatch(session, [record], now)
            return sent[0]

        if db:
            return await _test(db)

        with get_db_context() as session:
            return await _test(session)


# Singleton instance
alert_service = AlertService()
