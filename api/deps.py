"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from typing import Generator, Optional
from datetime import datetime
from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency
    Yields a SQLAlchemy session and ensures cleanup
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_now(
    at: Optional[datetime] = Query(None, description="Reference instant; defaults to the server clock")
) -> datetime:
    """
    Reference "now" for a request.

    Every engine call made while handling one request uses this single value.
    Stored times are naive local times, so an offset-aware value is converted
    to local time and its offset dropped.
    """
    if at is None:
        return datetime.now()
    if at.tzinfo is not None:
        return at.astimezone().replace(tzinfo=None)
    return at


def http_error(error: ValueError) -> HTTPException:
    """Map a service ValueError to 404 for missing entities, else 400"""
    message = str(error)
    if "not found" in message.lower():
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


async def get_current_user_id(
    user_id: int,
    db: Session = Depends(get_db)
) -> int:
    """
    Validate user exists and return user ID
    """
    from models import User

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )

    return user_id


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_user_service():
        from services.user_service import user_service
        return user_service

    @staticmethod
    def get_medicine_service():
        from services.medicine_service import medicine_service
        return medicine_service

    @staticmethod
    def get_adherence_service():
        from services.adherence_service import adherence_service
        return adherence_service

    @staticmethod
    def get_reminder_service():
        from services.reminder_service import reminder_service
        return reminder_service

    @staticmethod
    def get_vitals_service():
        from services.vitals_service import vitals_service
        return vitals_service

    @staticmethod
    def get_alert_service():
        from services.alert_service import alert_service
        return alert_service


# Service dependency instances
services = ServiceDependency()
