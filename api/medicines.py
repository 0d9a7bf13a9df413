"""
Medicines API Router
Endpoints for medicines, today's doses and dose logging
"""

from typing import List, Optional
from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from api.deps import get_current_user_id, get_db, get_now, http_error, services
from api.schemas.medicine import (
    DoseAction,
    DoseLogResponse,
    DoseToggleResponse,
    MaterializeResponse,
    MedicineCreate,
    MedicineDayView,
    MedicineList,
    MedicineResponse,
    MedicineUpdate,
)


router = APIRouter(tags=["medicines"])


@router.post(
    "/users/{user_id}/medicines",
    response_model=MedicineResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_medicine(
    user_id: int,
    medicine_data: MedicineCreate,
    db: Session = Depends(get_db)
):
    """
    Add a medicine for a user

    - **times**: Dose times such as "08:00" or "8:00 PM"
    - **timing_string**: Comma separated alternative to times
    """
    medicine_service = services.get_medicine_service()

    try:
        return await medicine_service.create_medicine(
            user_id=user_id,
            name=medicine_data.name,
            dosage=medicine_data.dosage,
            purpose=medicine_data.purpose,
            start_date=medicine_data.start_date,
            end_date=medicine_data.end_date,
            times=medicine_data.times,
            timing_string=medicine_data.timing_string,
            db=db
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/users/{user_id}/medicines", response_model=MedicineList)
async def list_medicines(
    user_id: int = Depends(get_current_user_id),
    active_only: bool = Query(False, description="Only return active medicines"),
    db: Session = Depends(get_db)
):
    medicine_service = services.get_medicine_service()

    medicines = await medicine_service.list_medicines(user_id, active_only=active_only, db=db)
    return MedicineList(
        medicines=[MedicineResponse.model_validate(m) for m in medicines],
        total=len(medicines),
        active_count=sum(1 for m in medicines if m.is_active)
    )


@router.get("/users/{user_id}/medicines/today", response_model=List[MedicineDayView])
async def get_todays_doses(
    user_id: int,
    day: Optional[date] = Query(None, description="Defaults to today"),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Every dose of the day with its state (taken, missed or pending)
    """
    medicine_service = services.get_medicine_service()

    try:
        return await medicine_service.get_day_view(user_id, now, day=day, db=db)
    except ValueError as e:
        raise http_error(e)


@router.post("/users/{user_id}/medicines/materialize-missed", response_model=MaterializeResponse)
async def materialize_missed(
    user_id: int,
    body: Optional[DoseAction] = None,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Record a missed event for every due dose without one. Safe to repeat.
    """
    medicine_service = services.get_medicine_service()

    try:
        events = await medicine_service.materialize_missed(user_id, now, day=body.day if body else None, db=db)
    except ValueError as e:
        raise http_error(e)

    return MaterializeResponse(
        recorded=len(events),
        events=[DoseLogResponse.model_validate(e) for e in events]
    )


@router.get("/medicines/{medicine_id}", response_model=MedicineResponse)
async def get_medicine(
    medicine_id: int,
    db: Session = Depends(get_db)
):
    medicine_service = services.get_medicine_service()

    medicine = await medicine_service.get_medicine(medicine_id, db=db)
    if not medicine:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medicine {medicine_id} not found"
        )
    return medicine


@router.put("/medicines/{medicine_id}", response_model=MedicineResponse)
async def update_medicine(
    medicine_id: int,
    update_data: MedicineUpdate,
    db: Session = Depends(get_db)
):
    medicine_service = services.get_medicine_service()

    try:
        return await medicine_service.update_medicine(
            medicine_id,
            db=db,
            **update_data.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise http_error(e)


@router.delete("/medicines/{medicine_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medicine(
    medicine_id: int,
    db: Session = Depends(get_db)
):
    medicine_service = services.get_medicine_service()

    deleted = await medicine_service.delete_medicine(medicine_id, db=db)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medicine {medicine_id} not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/medicines/{medicine_id}/doses/{dose_id}/taken", response_model=DoseLogResponse)
async def mark_dose_taken(
    medicine_id: int,
    dose_id: int,
    body: Optional[DoseAction] = None,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    medicine_service = services.get_medicine_service()

    try:
        event = await medicine_service.mark_taken(medicine_id, dose_id, now, day=body.day if body else None, db=db)
    except ValueError as e:
        raise http_error(e)
    return DoseLogResponse.model_validate(event)


@router.post("/medicines/{medicine_id}/doses/{dose_id}/missed", response_model=DoseLogResponse)
async def mark_dose_missed(
    medicine_id: int,
    dose_id: int,
    body: Optional[DoseAction] = None,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    medicine_service = services.get_medicine_service()

    try:
        event = await medicine_service.mark_missed(medicine_id, dose_id, now, day=body.day if body else None, db=db)
    except ValueError as e:
        raise http_error(e)
    return DoseLogResponse.model_validate(event)


@router.post("/medicines/{medicine_id}/doses/{dose_id}/toggle", response_model=DoseToggleResponse)
async def toggle_dose(
    medicine_id: int,
    dose_id: int,
    body: Optional[DoseAction] = None,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Toggle a dose: not logged or missed becomes taken, taken is reopened
    """
    medicine_service = services.get_medicine_service()

    try:
        event = await medicine_service.toggle_dose(medicine_id, dose_id, now, day=body.day if body else None, db=db)
    except ValueError as e:
        raise http_error(e)

    return DoseToggleResponse(
        taken=event is not None and event.is_taken,
        event=DoseLogResponse.model_validate(event) if event else None
    )
