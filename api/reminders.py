"""
Reminders API Router
Endpoints for checkup reminders and their daily slots
"""

from typing import List
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from api.deps import get_current_user_id, get_db, get_now, http_error, services
from api.schemas.reminder import (
    ReminderCreate,
    ReminderResponse,
    ReminderTodayResponse,
    ReminderUpdate,
    SlotToggle,
    SlotToggleResponse,
)


router = APIRouter(tags=["reminders"])


@router.post(
    "/users/{user_id}/reminders",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_reminder(
    user_id: int,
    reminder_data: ReminderCreate,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    reminder_service = services.get_reminder_service()

    try:
        return await reminder_service.create_reminder(
            user_id=user_id,
            title=reminder_data.title,
            times=reminder_data.times,
            start_date=reminder_data.start_date,
            end_date=reminder_data.end_date,
            reminder_type=reminder_data.reminder_type,
            now=now,
            db=db
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/users/{user_id}/reminders", response_model=List[ReminderResponse])
async def list_reminders(
    user_id: int = Depends(get_current_user_id),
    active_only: bool = Query(False),
    db: Session = Depends(get_db)
):
    reminder_service = services.get_reminder_service()
    return await reminder_service.list_reminders(user_id, active_only=active_only, db=db)


@router.get("/users/{user_id}/reminders/today", response_model=ReminderTodayResponse)
async def get_todays_reminders(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Today's slots (pending, completed or overdue) with summary counts.
    Resets yesterday's completions first.
    """
    reminder_service = services.get_reminder_service()

    try:
        return await reminder_service.get_today(user_id, now, db=db)
    except ValueError as e:
        raise http_error(e)


@router.put("/reminders/{reminder_id}", response_model=ReminderResponse)
async def update_reminder(
    reminder_id: int,
    update_data: ReminderUpdate,
    db: Session = Depends(get_db)
):
    reminder_service = services.get_reminder_service()

    try:
        return await reminder_service.update_reminder(
            reminder_id,
            db=db,
            **update_data.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise http_error(e)


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(
    reminder_id: int,
    db: Session = Depends(get_db)
):
    reminder_service = services.get_reminder_service()

    deleted = await reminder_service.delete_reminder(reminder_id, db=db)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reminder {reminder_id} not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reminders/{reminder_id}/toggle", response_model=SlotToggleResponse)
async def toggle_slot(
    reminder_id: int,
    toggle: SlotToggle,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Complete today's slot, or reopen it when already completed
    """
    reminder_service = services.get_reminder_service()

    try:
        return await reminder_service.toggle_slot(reminder_id, toggle.time, now, db=db)
    except ValueError as e:
        raise http_error(e)
