"""
Tests for Adherence Engine
Daily, weekly and monthly adherence aggregation
"""

import random
import pytest
from datetime import datetime, date, timedelta

from actions.adherence_engine import (
    NOT_AVAILABLE,
    AdherenceEngine,
    AdherenceRatio,
    DailyAdherencePoint,
    round_half_up,
)
from actions.periods import PeriodKind, start_of_day
from actions.snapshots import DoseLogSnapshot, MedicineSnapshot, ScheduledDoseSnapshot


NOW = datetime(2024, 6, 10, 21, 0)


@pytest.fixture
def engine():
    return AdherenceEngine()


def make_medicine(medicine_id=1, name="Metformin", logs=(), end=date(2024, 6, 30), is_active=True):
    return MedicineSnapshot(
        id=medicine_id,
        user_id=1,
        name=name,
        dosage="500mg",
        start_date=date(2024, 5, 1),
        end_date=end,
        is_active=is_active,
        doses=(
            ScheduledDoseSnapshot(id=medicine_id * 10 + 1, medicine_id=medicine_id, time_of_day="08:00"),
            ScheduledDoseSnapshot(id=medicine_id * 10 + 2, medicine_id=medicine_id, time_of_day="20:00"),
        ),
        logs=tuple(logs)
    )


def event(medicine_id, dose_id, day, is_taken):
    return DoseLogSnapshot(
        scheduled_dose_id=dose_id,
        medicine_id=medicine_id,
        date_recorded=start_of_day(day),
        is_taken=is_taken
    )


class TestRounding:

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [(87.5, 88), (66.666, 67), (50.0, 50), (0.4, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.unit
    def test_empty_ratio_is_not_available(self):
        ratio = AdherenceRatio()
        assert ratio.percentage is None
        assert ratio.display == NOT_AVAILABLE

    @pytest.mark.unit
    def test_empty_chart_point_is_zero(self):
        assert DailyAdherencePoint(day=date(2024, 6, 10), taken=0, total=0).percentage == 0


RATIO_PAIRS = [(taken, total) for total in range(1, 21) for taken in range(total + 1)]


class TestAdherenceBounds:

    @pytest.mark.unit
    @pytest.mark.parametrize("taken,total", RATIO_PAIRS)
    def test_ratio_stays_within_bounds(self, taken, total):
        ratio = AdherenceRatio(taken=taken, total=total)

        assert 0 <= ratio.percentage <= 100
        assert ratio.display == f"{ratio.percentage}%"
        assert DailyAdherencePoint(day=date(2024, 6, 10), taken=taken, total=total).percentage == ratio.percentage

    @pytest.mark.unit
    def test_full_and_none_are_exact(self):
        for total in range(1, 21):
            assert AdherenceRatio(taken=total, total=total).percentage == 100
            assert AdherenceRatio(taken=0, total=total).percentage == 0

    @pytest.mark.unit
    @pytest.mark.parametrize("seed", range(25))
    def test_weekly_mixed_history_stays_within_bounds(self, engine, seed):
        rng = random.Random(seed)
        logs = [
            event(1, dose_id, NOW.date() - timedelta(days=offset), rng.random() < 0.5)
            for offset in range(7)
            for dose_id in (11, 12)
            if rng.random() < 0.8
        ]

        result = engine.for_period([make_medicine(logs=logs)], PeriodKind.WEEKLY, NOW)

        taken = sum(1 for log in logs if log.is_taken)
        assert result.ratio.total == len(logs)
        assert result.ratio.taken == taken
        if logs:
            assert 0 <= result.percentage <= 100
            assert result.percentage == round_half_up(taken / len(logs) * 100)
        else:
            assert result.percentage is None
        for point in result.daily_series:
            assert 0 <= point.taken <= point.total
            assert 0 <= point.percentage <= 100


class TestDailyAdherence:

    @pytest.mark.unit
    def test_all_doses_missed_is_zero_percent(self, engine):
        result = engine.daily([make_medicine()], NOW)

        assert result.ratio.taken == 0
        assert result.ratio.total == 2
        assert result.percentage == 0
        assert result.display == "0%"

    @pytest.mark.unit
    def test_half_taken(self, engine):
        medicine = make_medicine(logs=[event(1, 11, NOW, True)])
        result = engine.daily([medicine], NOW)

        assert result.percentage == 50
        assert result.per_medicine[0].ratio.taken == 1

    @pytest.mark.unit
    def test_nothing_due_yet_is_not_available(self, engine):
        result = engine.daily([make_medicine()], datetime(2024, 6, 10, 7, 0))

        assert result.ratio.total == 0
        assert result.display == NOT_AVAILABLE
        assert result.daily_series[0].percentage == 0

    @pytest.mark.unit
    def test_only_due_doses_count(self, engine):
        medicine = make_medicine(logs=[event(1, 11, NOW, True)])
        result = engine.daily([medicine], datetime(2024, 6, 10, 12, 0))
        assert (result.ratio.taken, result.ratio.total) == (1, 1)

    @pytest.mark.unit
    def test_inactive_medicine_is_not_counted(self, engine):
        result = engine.daily([make_medicine(end=date(2024, 6, 9))], NOW)
        assert result.ratio.total == 0

    @pytest.mark.unit
    def test_no_medicines(self, engine):
        result = engine.for_period([], PeriodKind.DAILY, NOW)
        assert result.display == NOT_AVAILABLE
        assert result.per_medicine == []


class TestPeriodAdherence:

    @pytest.mark.unit
    def test_weekly_counts_events_in_window(self, engine):
        logs = [
            event(1, 11, date(2024, 6, 4), True),
            event(1, 12, date(2024, 6, 4), True),
            event(1, 11, date(2024, 6, 8), True),
            event(1, 12, date(2024, 6, 8), False),
            # outside the window
            event(1, 11, date(2024, 6, 3), False),
        ]
        result = engine.for_period([make_medicine(logs=logs)], PeriodKind.WEEKLY, NOW)

        assert (result.ratio.taken, result.ratio.total) == (3, 4)
        assert result.display == "75%"
        assert result.window_start == datetime(2024, 6, 4)

    @pytest.mark.unit
    def test_weekly_series_covers_every_day(self, engine):
        logs = [event(1, 11, date(2024, 6, 8), True), event(1, 12, date(2024, 6, 8), False)]
        result = engine.for_period([make_medicine(logs=logs)], PeriodKind.WEEKLY, NOW)

        assert len(result.daily_series) == 7
        points = {p.day: p for p in result.daily_series}
        assert points[date(2024, 6, 8)].percentage == 50
        assert points[date(2024, 6, 5)].percentage == 0
        assert points[date(2024, 6, 5)].total == 0

    @pytest.mark.unit
    def test_weekly_without_events_is_not_available(self, engine):
        result = engine.for_period([make_medicine()], PeriodKind.WEEKLY, NOW)

        assert result.display == NOT_AVAILABLE
        assert all(p.percentage == 0 for p in result.daily_series)

    @pytest.mark.unit
    def test_monthly_window(self, engine):
        logs = [
            event(1, 11, NOW - timedelta(days=29), True),
            event(1, 11, NOW - timedelta(days=30), False),
        ]
        result = engine.for_period([make_medicine(logs=logs)], "monthly", NOW)

        assert (result.ratio.taken, result.ratio.total) == (1, 1)
        assert len(result.daily_series) == 30

    @pytest.mark.unit
    def test_per_medicine_breakdown(self, engine):
        metformin = make_medicine(logs=[event(1, 11, date(2024, 6, 9), True)])
        lisinopril = make_medicine(
            medicine_id=2,
            name="Lisinopril",
            logs=[event(2, 21, date(2024, 6, 9), False)]
        )
        result = engine.for_period([metformin, lisinopril], PeriodKind.WEEKLY, NOW)

        by_name = {m.name: m for m in result.per_medicine}
        assert by_name["Metformin"].ratio.display == "100%"
        assert by_name["Lisinopril"].ratio.display == "0%"
        assert result.display == "50%"

    @pytest.mark.unit
    def test_to_dict(self, engine):
        data = engine.for_period([make_medicine()], PeriodKind.DAILY, NOW).to_dict()

        assert data["period"] == "daily"
        assert data["percentage"] == 0
        assert data["per_medicine"][0]["display"] == "0%"
        assert data["daily_series"][0]["date"] == "2024-06-10"
