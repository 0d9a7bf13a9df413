"""
Medicine Service
Business logic for medicines, their scheduled doses and dose logging
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime, date
from sqlalchemy.orm import Session

from database import get_db_context
import models
from actions.dose_reconciler import dose_reconciler
from actions.dose_resolver import dose_resolver
from actions.periods import format_time_of_day, parse_time_of_day, parse_timing_string, start_of_day
from actions.snapshots import DoseLogSnapshot
from services.snapshots import SqlDoseLogStore, load_medicines, medicine_snapshot
from services.user_service import require_user


logger = logging.getLogger(__name__)


def _resolve_times(times: Optional[List[str]], timing_string: Optional[str]) -> List[str]:
    """Canonical "HH:MM" dose times from explicit times or a timing string"""
    if times:
        parsed = set()
        for value in times:
            slot = parse_time_of_day(value)
            if slot is None:
                raise ValueError(f"Invalid dose time: {value}")
            parsed.add(slot)
        return [t.strftime("%H:%M") for t in sorted(parsed)]
    return [t.strftime("%H:%M") for t in parse_timing_string(timing_string or "")]


def _require_medicine(session: Session, medicine_id: int) -> models.Medicine:
    medicine = session.query(models.Medicine).filter(
        models.Medicine.id == medicine_id
    ).first()
    if not medicine:
        raise ValueError(f"Medicine {medicine_id} not found")
    return medicine


class MedicineService:
    """
    Service for medicine-related operations
    """

    async def create_medicine(
        self,
        user_id: int,
        name: str,
        dosage: str,
        start_date: date,
        end_date: date,
        times: Optional[List[str]] = None,
        timing_string: Optional[str] = None,
        purpose: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.Medicine:
        """
        Add a new medicine for a user

        Args:
            user_id: User ID
            name: Medicine name
            dosage: Dosage (e.g., "500mg")
            start_date: First active day
            end_date: Last active day (inclusive)
            times: Dose times ("08:00", "8:00 PM")
            timing_string: Comma separated times, used when times is empty
            purpose: Why the medicine is taken
            db: Database session

        Returns:
            Created Medicine object
        """
        def _add(session: Session) -> models.Medicine:
            require_user(session, user_id)
            if end_date < start_date:
                raise ValueError("End date cannot be before start date")

            dose_times = _resolve_times(times, timing_string)
            medicine = models.Medicine(
                user_id=user_id,
                name=name,
                dosage=dosage,
                purpose=purpose or "",
                timing_string=", ".join(format_time_of_day(t) for t in dose_times),
                start_date=start_date,
                end_date=end_date,
                is_active=True,
                doses=[models.ScheduledDose(time_of_day=t) for t in dose_times]
            )

            session.add(medicine)
            session.commit()
            session.refresh(medicine)

            logger.info(f"Added medicine {name} for user {user_id} with {len(dose_times)} dose(s)")
            return medicine

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def get_medicine(
        self,
        medicine_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medicine]:
        """Get medicine by ID"""
        def _get(session: Session) -> Optional[models.Medicine]:
            return session.query(models.Medicine).filter(
                models.Medicine.id == medicine_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def list_medicines(
        self,
        user_id: int,
        active_only: bool = False,
        db: Optional[Session] = None
    ) -> List[models.Medicine]:
        def _list(session: Session) -> List[models.Medicine]:
            return load_medicines(session, user_id, active_only=active_only)

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def update_medicine(
        self,
        medicine_id: int,
        db: Optional[Session] = None,
        **updates
    ) -> models.Medicine:
        """
        Update medicine fields.

        Passing times or timing_string replaces the scheduled doses, which
        also removes the dose log events of the old doses.
        """
        def _update(session: Session) -> models.Medicine:
            medicine = _require_medicine(session, medicine_id)

            times = updates.pop("times", None)
            timing_string = updates.pop("timing_string", None)

            for field in ("name", "dosage", "purpose", "start_date", "end_date"):
                if updates.get(field) is not None:
                    setattr(medicine, field, updates[field])

            if medicine.end_date < medicine.start_date:
                raise ValueError("End date cannot be before start date")

            if updates.get("is_active") is not None:
                medicine.is_active = updates["is_active"]
                medicine.inactive_date = None if medicine.is_active else datetime.now()

            if times is not None or timing_string is not None:
                dose_times = _resolve_times(times, timing_string)
                medicine.doses = [models.ScheduledDose(time_of_day=t) for t in dose_times]
                medicine.timing_string = ", ".join(format_time_of_day(t) for t in dose_times)

            session.commit()
            session.refresh(medicine)

            logger.info(f"Updated medicine {medicine_id}")
            return medicine

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def delete_medicine(
        self,
        medicine_id: int,
        db: Optional[Session] = None
    ) -> bool:
        def _delete(session: Session) -> bool:
            medicine = session.query(models.Medicine).filter(
                models.Medicine.id == medicine_id
            ).first()
            if not medicine:
                return False

            session.delete(medicine)
            session.commit()

            logger.info(f"Deleted medicine {medicine_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)

    async def deactivate_expired(
        self,
        user_id: int,
        now: datetime,
        db: Optional[Session] = None
    ) -> List[int]:
        """Clear the active flag of medicines whose end date has passed"""
        def _deactivate(session: Session) -> List[int]:
            deactivated = []
            for medicine in load_medicines(session, user_id, active_only=True):
                if dose_resolver.should_deactivate(medicine_snapshot(medicine), now):
                    medicine.is_active = False
                    medicine.inactive_date = now
                    deactivated.append(medicine.id)

            if deactivated:
                session.commit()
                logger.info(f"Deactivated expired medicines {deactivated} for user {user_id}")
            return deactivated

        if db:
            return _deactivate(db)

        with get_db_context() as session:
            return _deactivate(session)

    async def get_day_view(
        self,
        user_id: int,
        now: datetime,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[Dict[str, Any]]:
        """Every dose of the user's medicines on the day with its reconciled state"""
        def _view(session: Session) -> List[Dict[str, Any]]:
            require_user(session, user_id)
            target = day or now.date()
            view = []
            for row in load_medicines(session, user_id):
                medicine = medicine_snapshot(row)
                doses = dose_reconciler.day_view(medicine, target, now)
                view.append({
                    "medicine_id": medicine.id,
                    "name": medicine.name,
                    "dosage": medicine.dosage,
                    "display_name": medicine.display_name,
                    "timing_frequency": medicine.display_timing_frequency,
                    "is_active": medicine.is_active,
                    "is_active_on_day": dose_resolver.is_active_on(medicine, target),
                    "has_period_ended": dose_resolver.has_period_ended(medicine, now),
                    "is_future": dose_resolver.is_future_medicine(medicine, now),
                    "has_missed_dose_today": dose_resolver.has_missed_dose_today(medicine, now),
                    "doses": [
                        dict(d.to_dict(), time=format_time_of_day(d.due.scheduled_at))
                        for d in doses
                    ]
                })
            return view

        if db:
            return _view(db)

        with get_db_context() as session:
            return _view(session)

    async def materialize_missed(
        self,
        user_id: int,
        now: datetime,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[DoseLogSnapshot]:
        """Record a missed event for every due dose of the day that has none"""
        def _materialize(session: Session) -> List[DoseLogSnapshot]:
            require_user(session, user_id)
            target = day or now.date()
            if start_of_day(target) > start_of_day(now):
                raise ValueError("Cannot materialize missed doses for a future day")

            store = SqlDoseLogStore(session)
            created = []
            for row in load_medicines(session, user_id, active_only=True):
                created.extend(
                    dose_reconciler.materialize_missed(medicine_snapshot(row), target, now, store)
                )
            session.commit()
            return created

        if db:
            return _materialize(db)

        with get_db_context() as session:
            return _materialize(session)

    def _record(
        self,
        action: str,
        medicine_id: int,
        scheduled_dose_id: int,
        now: datetime,
        day: Optional[date],
        db: Optional[Session]
    ) -> Optional[DoseLogSnapshot]:
        def _apply(session: Session) -> Optional[DoseLogSnapshot]:
            medicine = medicine_snapshot(_require_medicine(session, medicine_id))
            target = day or now.date()
            if start_of_day(target) > start_of_day(now):
                raise ValueError("Cannot log doses for a future day")

            store = SqlDoseLogStore(session)
            command = getattr(dose_reconciler, action)
            event = command(medicine, scheduled_dose_id, target, store, now)
            session.commit()

            logger.info(
                f"{action} for dose {scheduled_dose_id} of medicine {medicine_id} "
                f"on {target.isoformat()}"
            )
            return event

        if db:
            return _apply(db)

        with get_db_context() as session:
            return _apply(session)

    async def mark_taken(
        self,
        medicine_id: int,
        scheduled_dose_id: int,
        now: datetime,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> DoseLogSnapshot:
        return self._record("mark_taken", medicine_id, scheduled_dose_id, now, day, db)

    async def mark_missed(
        self,
        medicine_id: int,
        scheduled_dose_id: int,
        now: datetime,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> DoseLogSnapshot:
        return self._record("mark_missed", medicine_id, scheduled_dose_id, now, day, db)

    async def toggle_dose(
        self,
        medicine_id: int,
        scheduled_dose_id: int,
        now: datetime,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> Optional[DoseLogSnapshot]:
        """Toggle taken state; returns None when a taken event was reopened"""
        return self._record("toggle_taken", medicine_id, scheduled_dose_id, now, day, db)


# Singleton instance
medicine_service = MedicineService()
