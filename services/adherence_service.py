"""
Adherence Service
Daily, weekly and monthly adherence for a user's medicines
"""

import logging
from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Session

from database import get_db_context
from actions.adherence_engine import AdherenceResult, adherence_engine
from actions.periods import PeriodKind
from services.snapshots import load_medicines, medicine_snapshot
from services.user_service import require_user


logger = logging.getLogger(__name__)


class AdherenceService:
    """
    Service for adherence tracking
    """

    async def get_adherence(
        self,
        user_id: int,
        period: PeriodKind,
        now: datetime,
        db: Optional[Session] = None
    ) -> AdherenceResult:
        """
        Adherence over the period ending at now

        Args:
            user_id: User ID
            period: daily, weekly or monthly
            now: Reference instant for the whole calculation
            db: Database session

        Returns:
            AdherenceResult with per-medicine and per-day breakdowns
        """
        def _get(session: Session) -> AdherenceResult:
            require_user(session, user_id)
            kind = PeriodKind(period)
            # Daily adherence only counts medicines active today; weekly and
            # monthly windows keep events of medicines deactivated since.
            medicines = [
                medicine_snapshot(row)
                for row in load_medicines(session, user_id, active_only=kind == PeriodKind.DAILY)
            ]
            result = adherence_engine.for_period(medicines, kind, now)

            logger.info(
                f"{kind.value} adherence for user {user_id}: {result.display} "
                f"({result.ratio.taken}/{result.ratio.total})"
            )
            return result

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
adherence_service = AdherenceService()
