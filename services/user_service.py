"""
User Service
Business logic for user accounts
"""

import logging
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from database import get_db_context
import models


logger = logging.getLogger(__name__)


class UserService:
    """
    Service for user-related operations
    """

    async def create_user(
        self,
        name: str,
        email: str,
        db: Optional[Session] = None
    ) -> models.User:
        """
        Create a new user

        Args:
            name: Display name used in alert bodies
            email: User email (unique)
            db: Database session (optional)

        Returns:
            Created User object
        """
        def _create(session: Session) -> models.User:
            existing = session.query(models.User).filter(
                models.User.email == email
            ).first()

            if existing:
                raise ValueError(f"User with email {email} already exists")

            user = models.User(name=name, email=email)
            session.add(user)
            session.commit()
            session.refresh(user)

            logger.info(f"Created user: {user.id} - {user.name}")
            return user

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_user(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.User]:
        """Get user by ID"""
        def _get(session: Session) -> Optional[models.User]:
            return session.query(models.User).filter(
                models.User.id == user_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_last_daily_check(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> Optional[datetime]:
        def _get(session: Session) -> Optional[datetime]:
            return require_user(session, user_id).last_daily_check

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def set_last_daily_check(
        self,
        user_id: int,
        checked_at: datetime,
        db: Optional[Session] = None
    ) -> None:
        def _set(session: Session) -> None:
            user = require_user(session, user_id)
            user.last_daily_check = checked_at
            session.commit()

        if db:
            return _set(db)

        with get_db_context() as session:
            return _set(session)

    async def list_user_ids(self, db: Optional[Session] = None) -> List[int]:
        """IDs of every user, for the daily job"""
        def _list(session: Session) -> List[int]:
            return [row.id for row in session.query(models.User.id).order_by(models.User.id).all()]

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)


def require_user(session: Session, user_id: int) -> models.User:
    """User row or ValueError"""
    user = session.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise ValueError(f"User {user_id} not found")
    return user


# Singleton instance
user_service = UserService()
