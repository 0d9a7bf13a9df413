"""
Daily Job
End-of-day reconciliation: deactivation, reminder reset, missed dose
materialization, threshold alerts and digests
"""

import asyncio
import logging
from typing import Dict, List, Optional, Any
from datetime import date, datetime, timedelta
from sqlalchemy.orm import Session

from actions.periods import iter_days
from config import engine_config
from database import get_db_context
from services.alert_service import alert_service
from services.medicine_service import medicine_service
from services.reminder_service import reminder_service
from services.user_service import user_service


logger = logging.getLogger(__name__)


def catch_up_days(last_check: Optional[datetime], now: datetime) -> List[date]:
    """
    Days whose missed doses still need recording.

    Starts at the day of the previous run, since doses scheduled after that
    run were not yet due; a first run covers today only. The catch-up never
    reaches further back than the monthly window.
    """
    today = now.date()
    earliest = (now - timedelta(days=engine_config.MONTHLY_OFFSET_DAYS)).date()
    start = last_check.date() if last_check else today
    return list(iter_days(max(min(start, today), earliest), today))


async def run_daily_checks(
    user_id: int,
    now: Optional[datetime] = None,
    db: Optional[Session] = None
) -> Dict[str, Any]:
    """
    Run every daily step for one user against a single captured now.

    Missed doses are recorded from the previous run's day up to today, so
    doses scheduled after the run time and days the job did not run are
    still recorded. Adherence work is committed before any alert is
    composed, so a failed email delivery never undoes it.
    """
    now = now or datetime.now()

    async def _run(session: Session) -> Dict[str, Any]:
        last_check = await user_service.get_last_daily_check(user_id, db=session)

        # Before deactivation, so an expired medicine's last days are still recorded
        materialized = []
        for day in catch_up_days(last_check, now):
            materialized.extend(await medicine_service.materialize_missed(user_id, now, day=day, db=session))
        await user_service.set_last_daily_check(user_id, now, db=session)

        deactivated = await medicine_service.deactivate_expired(user_id, now, db=session)
        reset = await reminder_service.reset_if_needed(user_id, now, db=session)
        emergency = await alert_service.evaluate_thresholds(user_id, now, db=session)
        digests = await alert_service.send_daily_digests(user_id, now, db=session)

        summary = {
            "user_id": user_id,
            "run_at": now.isoformat(),
            "deactivated_medicines": deactivated,
            "reminders_reset": reset,
            "missed_doses_recorded": len(materialized),
            "alerts": [a.to_dict() for a in emergency + digests]
        }
        logger.info(
            f"Daily checks for user {user_id}: {len(deactivated)} deactivated, "
            f"{len(materialized)} missed recorded, {len(emergency) + len(digests)} alert(s)"
        )
        return summary

    if db:
        return await _run(db)

    with get_db_context() as session:
        return await _run(session)


async def run_for_all_users(now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Daily checks for every user; one user's failure does not stop the others"""
    now = now or datetime.now()
    results = []
    for user_id in await user_service.list_user_ids():
        try:
            results.append(await run_daily_checks(user_id, now))
        except Exception as e:
            logger.error(f"Daily checks failed for user {user_id}: {e}")
    logger.info(f"Daily checks completed for {len(results)} user(s)")
    return results


def run_scheduled_job() -> None:
    """Entry point for the background scheduler thread"""
    asyncio.run(run_for_all_users())
