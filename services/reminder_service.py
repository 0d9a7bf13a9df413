"""
Reminder Service
Business logic for checkup reminders and their daily slot state
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime, date
from sqlalchemy.orm import Session

from database import get_db_context
import models
from actions.periods import parse_time_of_day
from actions.reminder_engine import reminder_engine
from actions.snapshots import ReminderType
from services.snapshots import apply_reminder_snapshot, reminder_snapshot
from services.user_service import require_user


logger = logging.getLogger(__name__)


def _normalize_times(times: List[str]) -> List[str]:
    parsed = set()
    for value in times or []:
        slot = parse_time_of_day(value)
        if slot is None:
            raise ValueError(f"Invalid reminder time: {value}")
        parsed.add(slot)
    if not parsed:
        raise ValueError("A reminder needs at least one time")
    return [t.strftime("%H:%M") for t in sorted(parsed)]


def _require_reminder(session: Session, reminder_id: int) -> models.Reminder:
    reminder = session.query(models.Reminder).filter(
        models.Reminder.id == reminder_id
    ).first()
    if not reminder:
        raise ValueError(f"Reminder {reminder_id} not found")
    return reminder


class ReminderService:
    """
    Service for reminder-related operations
    """

    async def create_reminder(
        self,
        user_id: int,
        title: str,
        times: List[str],
        start_date: date,
        end_date: date,
        reminder_type: ReminderType = ReminderType.CHECKUP,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.Reminder:
        def _create(session: Session) -> models.Reminder:
            require_user(session, user_id)
            if end_date < start_date:
                raise ValueError("End date cannot be before start date")

            reminder = models.Reminder(
                user_id=user_id,
                title=title,
                reminder_type=reminder_type,
                times=_normalize_times(times),
                start_date=start_date,
                end_date=end_date,
                is_active=True,
                completed_times=[],
                last_reset_date=now or datetime.now()
            )
            session.add(reminder)
            session.commit()
            session.refresh(reminder)

            logger.info(f"Created reminder {reminder.id} '{title}' for user {user_id}")
            return reminder

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def list_reminders(
        self,
        user_id: int,
        active_only: bool = False,
        db: Optional[Session] = None
    ) -> List[models.Reminder]:
        def _list(session: Session) -> List[models.Reminder]:
            query = session.query(models.Reminder).filter(models.Reminder.user_id == user_id)
            if active_only:
                query = query.filter(models.Reminder.is_active == True)  # noqa: E712
            return query.order_by(models.Reminder.id).all()

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def update_reminder(
        self,
        reminder_id: int,
        db: Optional[Session] = None,
        **updates
    ) -> models.Reminder:
        def _update(session: Session) -> models.Reminder:
            reminder = _require_reminder(session, reminder_id)

            for field in ("title", "reminder_type", "start_date", "end_date", "is_active"):
                if updates.get(field) is not None:
                    setattr(reminder, field, updates[field])

            if reminder.end_date < reminder.start_date:
                raise ValueError("End date cannot be before start date")

            if updates.get("times") is not None:
                reminder.times = _normalize_times(updates["times"])

            session.commit()
            session.refresh(reminder)

            logger.info(f"Updated reminder {reminder_id}")
            return reminder

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def delete_reminder(
        self,
        reminder_id: int,
        db: Optional[Session] = None
    ) -> bool:
        def _delete(session: Session) -> bool:
            reminder = session.query(models.Reminder).filter(
                models.Reminder.id == reminder_id
            ).first()
            if not reminder:
                return False

            session.delete(reminder)
            session.commit()

            logger.info(f"Deleted reminder {reminder_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)

    def _reset_rows(self, rows: List[models.Reminder], now: datetime) -> int:
        changed = 0
        for row in rows:
            snapshot, did_reset = reminder_engine.reset_completed_times_if_needed(
                reminder_snapshot(row), now
            )
            if did_reset:
                apply_reminder_snapshot(row, snapshot)
                changed += 1
        return changed

    async def reset_if_needed(
        self,
        user_id: int,
        now: datetime,
        db: Optional[Session] = None
    ) -> int:
        """Clear yesterday's completions; returns the number of reminders reset"""
        def _reset(session: Session) -> int:
            rows = session.query(models.Reminder).filter(models.Reminder.user_id == user_id).all()
            changed = self._reset_rows(rows, now)
            if changed:
                session.commit()
                logger.info(f"Reset completed times of {changed} reminder(s) for user {user_id}")
            return changed

        if db:
            return _reset(db)

        with get_db_context() as session:
            return _reset(session)

    async def toggle_slot(
        self,
        reminder_id: int,
        slot_time: str,
        now: datetime,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """Complete or reopen today's slot and return its new state"""
        def _toggle(session: Session) -> Dict[str, Any]:
            row = _require_reminder(session, reminder_id)
            self._reset_rows([row], now)

            snapshot = reminder_engine.toggle_time_slot(reminder_snapshot(row), slot_time, now)
            apply_reminder_snapshot(row, snapshot)
            session.commit()

            completed = reminder_engine.is_time_slot_completed(snapshot, slot_time, now)
            logger.info(
                f"{'Completed' if completed else 'Reopened'} slot {slot_time} "
                f"of reminder {reminder_id}"
            )
            return {
                "reminder_id": reminder_id,
                "time": parse_time_of_day(slot_time).strftime("%H:%M"),
                "state": reminder_engine.slot_state(snapshot, slot_time, now, now).value,
                "completed": completed
            }

        if db:
            return _toggle(db)

        with get_db_context() as session:
            return _toggle(session)

    async def get_today(
        self,
        user_id: int,
        now: datetime,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """Today's slots of every reminder plus summary counts"""
        def _today(session: Session) -> Dict[str, Any]:
            require_user(session, user_id)
            rows = session.query(models.Reminder).filter(
                models.Reminder.user_id == user_id
            ).order_by(models.Reminder.id).all()
            if self._reset_rows(rows, now):
                session.commit()

            snapshots = [reminder_snapshot(row) for row in rows]
            reminders = []
            for snapshot in snapshots:
                reminders.append({
                    "reminder_id": snapshot.id,
                    "title": snapshot.title,
                    "reminder_type": snapshot.reminder_type.value,
                    "has_period_ended": reminder_engine.has_period_ended(snapshot, now),
                    "is_future": reminder_engine.is_future_reminder(snapshot, now),
                    "slots": [s.to_dict() for s in reminder_engine.slots_for_day(snapshot, now, now)]
                })

            return {
                "date": now.date().isoformat(),
                "reminders": reminders,
                "summary": reminder_engine.summary(snapshots, now).to_dict()
            }

        if db:
            return _today(db)

        with get_db_context() as session:
            return _today(session)


# Singleton instance
reminder_service = ReminderService()
