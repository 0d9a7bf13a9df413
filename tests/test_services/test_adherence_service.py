"""
Tests for Adherence Service
Adherence computed from medicines and dose log events stored in SQLite
"""

import pytest
from datetime import datetime, date

from actions.periods import PeriodKind
from models import DoseLogEvent
from services.adherence_service import AdherenceService


@pytest.fixture
def adherence_service():
    return AdherenceService()


def record(db_session, medicine, dose_index, day, is_taken):
    db_session.add(DoseLogEvent(
        medicine_id=medicine.id,
        scheduled_dose_id=medicine.doses[dose_index].id,
        date_recorded=datetime.combine(day, datetime.min.time()),
        is_taken=is_taken,
        logged_by="user"
    ))
    db_session.commit()


class TestDailyAdherence:

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_missed_everything(self, adherence_service, db_session, test_medicine, now):
        result = await adherence_service.get_adherence(test_medicine.user_id, PeriodKind.DAILY, now, db=db_session)

        assert result.ratio.total == 2
        assert result.display == "0%"

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_one_of_two_taken(self, adherence_service, db_session, test_medicine, now):
        record(db_session, test_medicine, 0, date(2024, 6, 10), True)

        result = await adherence_service.get_adherence(test_medicine.user_id, "daily", now, db=db_session)

        assert result.percentage == 50

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_expired_medicine_not_counted(self, adherence_service, db_session, test_medicine, now):
        test_medicine.is_active = False
        db_session.commit()

        result = await adherence_service.get_adherence(test_medicine.user_id, PeriodKind.DAILY, now, db=db_session)
        assert result.display == "N/A"

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_unknown_user(self, adherence_service, db_session, now):
        with pytest.raises(ValueError, match="not found"):
            await adherence_service.get_adherence(999, PeriodKind.DAILY, now, db=db_session)


class TestWeeklyAdherence:

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_weekly_from_events(self, adherence_service, db_session, test_medicine, now):
        record(db_session, test_medicine, 0, date(2024, 6, 8), True)
        record(db_session, test_medicine, 1, date(2024, 6, 8), True)
        record(db_session, test_medicine, 0, date(2024, 6, 9), True)
        record(db_session, test_medicine, 1, date(2024, 6, 9), False)

        result = await adherence_service.get_adherence(test_medicine.user_id, PeriodKind.WEEKLY, now, db=db_session)

        assert (result.ratio.taken, result.ratio.total) == (3, 4)
        assert result.display == "75%"
        assert len(result.daily_series) == 7

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_weekly_keeps_deactivated_medicine_history(self, adherence_service, db_session, test_medicine, now):
        record(db_session, test_medicine, 0, date(2024, 6, 8), True)
        test_medicine.is_active = False
        db_session.commit()

        result = await adherence_service.get_adherence(test_medicine.user_id, PeriodKind.WEEKLY, now, db=db_session)
        assert result.display == "100%"

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_empty_week(self, adherence_service, db_session, test_medicine, now):
        result = await adherence_service.get_adherence(test_medicine.user_id, PeriodKind.WEEKLY, now, db=db_session)

        assert result.display == "N/A"
        assert [p.percentage for p in result.daily_series] == [0] * 7
