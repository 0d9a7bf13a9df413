"""
Vitals Service
Business logic for blood pressure and sugar readings
"""

import logging
from typing import List, Optional
from datetime import datetime, date, time
from sqlalchemy.orm import Session

from database import get_db_context
import models
from actions.periods import PeriodKind
from actions.snapshots import SugarContext, VitalType
from actions.vitals_engine import VitalsSummary, vitals_engine
from services.snapshots import load_readings, settings_snapshot, vital_snapshot
from services.user_service import require_user


logger = logging.getLogger(__name__)


class VitalsService:
    """
    Service for vital readings
    """

    async def log_reading(
        self,
        user_id: int,
        vital_type: VitalType,
        reading_date: date,
        reading_time: time,
        systolic: Optional[int] = None,
        diastolic: Optional[int] = None,
        sugar_level: Optional[float] = None,
        sugar_context: Optional[SugarContext] = None,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.VitalReading:
        """
        Record a reading

        Args:
            user_id: User ID
            vital_type: bp or sugar
            reading_date: Day of the reading
            reading_time: Time of the reading
            systolic/diastolic: Blood pressure payload (mmHg)
            sugar_level/sugar_context: Sugar payload (mg/dL), fasting by default
            notes: Free text
            db: Database session

        Returns:
            Created VitalReading object
        """
        def _log(session: Session) -> models.VitalReading:
            require_user(session, user_id)
            kind = VitalType(vital_type)

            if kind == VitalType.BP:
                if not systolic or not diastolic or systolic <= 0 or diastolic <= 0:
                    raise ValueError("Blood pressure readings need positive systolic and diastolic values")
                reading = models.VitalReading(
                    user_id=user_id,
                    vital_type=kind,
                    reading_date=reading_date,
                    reading_time=reading_time,
                    systolic=systolic,
                    diastolic=diastolic,
                    notes=notes
                )
            else:
                if sugar_level is None or sugar_level <= 0:
                    raise ValueError("Sugar readings need a positive sugar level")
                reading = models.VitalReading(
                    user_id=user_id,
                    vital_type=kind,
                    reading_date=reading_date,
                    reading_time=reading_time,
                    sugar_level=sugar_level,
                    sugar_context=SugarContext(sugar_context or SugarContext.FASTING),
                    notes=notes
                )

            session.add(reading)
            session.commit()
            session.refresh(reading)

            logger.info(f"Logged {kind.value} reading {reading.id} for user {user_id}")
            return reading

        if db:
            return _log(db)

        with get_db_context() as session:
            return _log(session)

    async def list_readings(
        self,
        user_id: int,
        vital_type: Optional[VitalType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[models.VitalReading]:
        """Readings in time order, optionally filtered by type and date range"""
        def _list(session: Session) -> List[models.VitalReading]:
            query = session.query(models.VitalReading).filter(
                models.VitalReading.user_id == user_id
            )
            if vital_type is not None:
                query = query.filter(models.VitalReading.vital_type == VitalType(vital_type))
            if start_date is not None:
                query = query.filter(models.VitalReading.reading_date >= start_date)
            if end_date is not None:
                query = query.filter(models.VitalReading.reading_date <= end_date)
            return query.order_by(
                models.VitalReading.reading_date,
                models.VitalReading.reading_time,
                models.VitalReading.id
            ).all()

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def get_summary(
        self,
        user_id: int,
        period: PeriodKind,
        now: datetime,
        db: Optional[Session] = None
    ) -> VitalsSummary:
        def _summary(session: Session) -> VitalsSummary:
            user = require_user(session, user_id)
            readings = [
                vital_snapshot(row)
                for row in load_readings(session, user_id)
            ]
            return vitals_engine.summarize(
                readings, PeriodKind(period), now, settings_snapshot(user.alert_settings, user_id)
            )

        if db:
            return _summary(db)

        with get_db_context() as session:
            return _summary(session)


# Singleton instance
vitals_service = VitalsService()
