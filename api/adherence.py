"""
Adherence API Router
Endpoints for daily, weekly and monthly adherence
"""

from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_now, http_error, services
from api.schemas.adherence import AdherenceResponse
from actions.periods import PeriodKind


router = APIRouter(tags=["adherence"])


@router.get("/users/{user_id}/adherence", response_model=AdherenceResponse)
async def get_adherence(
    user_id: int,
    period: PeriodKind = Query(PeriodKind.DAILY, description="daily, weekly or monthly"),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Adherence percentage for the period ending now

    Returns "N/A" as display when no doses were due in the period.
    """
    adherence_service = services.get_adherence_service()

    try:
        result = await adherence_service.get_adherence(user_id, period, now, db=db)
    except ValueError as e:
        raise http_error(e)
    return AdherenceResponse(**result.to_dict())
