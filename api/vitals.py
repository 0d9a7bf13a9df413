"""
Vitals API Router
Endpoints for blood pressure and sugar readings
"""

from typing import Optional
from datetime import date, datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.deps import get_current_user_id, get_db, get_now, http_error, services
from api.schemas.vitals import (
    VitalReadingCreate,
    VitalReadingList,
    VitalReadingResponse,
    VitalsSummaryResponse,
)
from actions.periods import PeriodKind
from actions.snapshots import VitalType


router = APIRouter(tags=["vitals"])


@router.post(
    "/users/{user_id}/vitals",
    response_model=VitalReadingResponse,
    status_code=status.HTTP_201_CREATED
)
async def log_reading(
    user_id: int,
    reading_data: VitalReadingCreate,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Record a reading

    Today's latest readings are checked against the alert thresholds right
    away; a condition already raised today is not sent again.
    """
    vitals_service = services.get_vitals_service()
    alert_service = services.get_alert_service()

    try:
        reading = await vitals_service.log_reading(
            user_id=user_id,
            db=db,
            **reading_data.model_dump()
        )
        await alert_service.evaluate_thresholds(user_id, now, db=db)
    except ValueError as e:
        raise http_error(e)
    return reading


@router.get("/users/{user_id}/vitals", response_model=VitalReadingList)
async def list_readings(
    user_id: int = Depends(get_current_user_id),
    vital_type: Optional[VitalType] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    vitals_service = services.get_vitals_service()

    readings = await vitals_service.list_readings(
        user_id,
        vital_type=vital_type,
        start_date=start_date,
        end_date=end_date,
        db=db
    )
    return VitalReadingList(
        readings=[VitalReadingResponse.model_validate(r) for r in readings],
        total=len(readings)
    )


@router.get("/users/{user_id}/vitals/summary", response_model=VitalsSummaryResponse)
async def get_summary(
    user_id: int,
    period: PeriodKind = Query(PeriodKind.WEEKLY),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    vitals_service = services.get_vitals_service()

    try:
        summary = await vitals_service.get_summary(user_id, period, now, db=db)
    except ValueError as e:
        raise http_error(e)
    return VitalsSummaryResponse(**summary.to_dict())
