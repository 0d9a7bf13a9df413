"""
Alerts API Router
Endpoints for alert settings, emergency contacts, alert history and alert runs
"""

from typing import List, Optional
from datetime import date, datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_current_user_id, get_db, get_now, http_error, services
from api.schemas.alert import (
    AlertList,
    AlertRecordResponse,
    AlertResponse,
    AlertSettingsResponse,
    AlertSettingsUpdate,
    AlertStats,
    ContactCreate,
    ContactList,
    DailyChecksResponse,
)
from actions.snapshots import AlertType


router = APIRouter(prefix="/users/{user_id}", tags=["alerts"])


@router.get("/alert-settings", response_model=AlertSettingsResponse)
async def get_alert_settings(
    user_id: int,
    db: Session = Depends(get_db)
):
    """
    Alert settings, created with default thresholds on first access
    """
    alert_service = services.get_alert_service()

    try:
        return await alert_service.get_or_create_settings(user_id, db=db)
    except ValueError as e:
        raise http_error(e)


@router.put("/alert-settings", response_model=AlertSettingsResponse)
async def update_alert_settings(
    user_id: int,
    update_data: AlertSettingsUpdate,
    db: Session = Depends(get_db)
):
    alert_service = services.get_alert_service()

    try:
        return await alert_service.update_settings(
            user_id,
            db=db,
            **update_data.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise http_error(e)


@router.post("/alert-settings/contacts", response_model=ContactList)
async def add_contact(
    user_id: int,
    contact: ContactCreate,
    db: Session = Depends(get_db)
):
    alert_service = services.get_alert_service()

    try:
        contacts = await alert_service.add_contact(user_id, contact.email, db=db)
    except ValueError as e:
        raise http_error(e)
    return ContactList(contacts=contacts)


@router.delete("/alert-settings/contacts/{email}", response_model=ContactList)
async def remove_contact(
    user_id: int,
    email: str,
    db: Session = Depends(get_db)
):
    alert_service = services.get_alert_service()

    try:
        contacts = await alert_service.remove_contact(user_id, email, db=db)
    except ValueError as e:
        raise http_error(e)
    return ContactList(contacts=contacts)


@router.get("/alerts", response_model=AlertList)
async def list_alerts(
    user_id: int = Depends(get_current_user_id),
    day: Optional[date] = Query(None),
    alert_type: Optional[AlertType] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    alert_service = services.get_alert_service()

    alerts = await alert_service.list_alerts(user_id, day=day, alert_type=alert_type, limit=limit, db=db)
    return AlertList(
        alerts=[AlertResponse.model_validate(a) for a in alerts],
        total=len(alerts)
    )


@router.get("/alerts/stats", response_model=AlertStats)
async def get_alert_stats(
    user_id: int,
    db: Session = Depends(get_db)
):
    alert_service = services.get_alert_service()

    try:
        return await alert_service.get_stats(user_id, db=db)
    except ValueError as e:
        raise http_error(e)


@router.post("/alerts/evaluate", response_model=List[AlertRecordResponse])
async def evaluate_thresholds(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Raise emergency alerts for today's latest out-of-range readings.
    Conditions already raised today are skipped.
    """
    alert_service = services.get_alert_service()

    try:
        alerts = await alert_service.evaluate_thresholds(user_id, now, db=db)
    except ValueError as e:
        raise http_error(e)
    return [AlertRecordResponse(**a.to_dict()) for a in alerts]


@router.post("/alerts/digest", response_model=List[AlertRecordResponse])
async def send_digests(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Send today's missed medicine and missed reminder reports, once per day each
    """
    alert_service = services.get_alert_service()

    try:
        alerts = await alert_service.send_daily_digests(user_id, now, db=db)
    except ValueError as e:
        raise http_error(e)
    return [AlertRecordResponse(**a.to_dict()) for a in alerts]


@router.post("/alerts/test", response_model=AlertRecordResponse)
async def send_test_alert(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    alert_service = services.get_alert_service()

    try:
        alert = await alert_service.send_test_alert(user_id, now, db=db)
    except ValueError as e:
        raise http_error(e)
    return AlertRecordResponse(**alert.to_dict())


@router.post("/daily-checks", response_model=DailyChecksResponse)
async def run_daily_checks(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Run the end-of-day job for one user now
    """
    from services.daily_job import run_daily_checks as run_checks

    try:
        return await run_checks(user_id, now, db=db)
    except ValueError as e:
        raise http_error(e)
