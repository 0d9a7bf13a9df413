"""
Tests for Reminder Engine
Slot states, toggling and the daily reset
"""

import pytest
from datetime import datetime, date, time

from actions.reminder_engine import ReminderEngine, SlotState
from actions.snapshots import ReminderSnapshot


NOW = datetime(2024, 6, 10, 8, 0)


@pytest.fixture
def engine():
    return ReminderEngine()


def make_reminder(times=("07:00", "19:00"), completed=(), last_reset=datetime(2024, 6, 10, 6, 0), **kwargs):
    values = dict(
        id=1,
        user_id=1,
        title="Morning BP check",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
        times=tuple(times),
        completed_times=tuple(completed),
        last_reset_date=last_reset
    )
    values.update(kwargs)
    return ReminderSnapshot(**values)


class TestSlots:

    @pytest.mark.unit
    def test_slot_times_sorted_and_deduplicated(self, engine):
        reminder = make_reminder(times=("19:00", "7:00 AM", "07:00", "bad"))
        assert engine.slot_times(reminder) == [time(7, 0), time(19, 0)]

    @pytest.mark.unit
    def test_overdue_and_pending(self, engine):
        slots = engine.slots_for_day(make_reminder(), NOW, NOW)
        assert [s.state for s in slots] == [SlotState.OVERDUE, SlotState.PENDING]

    @pytest.mark.unit
    def test_completed_slot(self, engine):
        reminder = make_reminder(completed=[datetime(2024, 6, 10, 7, 0)])
        assert engine.slot_state(reminder, "07:00", NOW, NOW) == SlotState.COMPLETED
        assert not engine.is_time_slot_overdue(reminder, "07:00", NOW)

    @pytest.mark.unit
    def test_completion_on_another_day_does_not_count(self, engine):
        reminder = make_reminder(completed=[datetime(2024, 6, 9, 7, 0)])
        assert not engine.is_time_slot_completed(reminder, "07:00", NOW)

    @pytest.mark.unit
    def test_past_day_reports_missed(self, engine):
        reminder = make_reminder(completed=[datetime(2024, 6, 9, 7, 0)])
        past = date(2024, 6, 9)

        assert engine.slot_state(reminder, "07:00", past, NOW) == SlotState.COMPLETED
        assert engine.slot_state(reminder, "19:00", past, NOW) == SlotState.MISSED

    @pytest.mark.unit
    def test_future_day_is_pending(self, engine):
        assert engine.slot_state(make_reminder(), "07:00", date(2024, 6, 11), NOW) == SlotState.PENDING

    @pytest.mark.unit
    def test_ended_reminder_has_no_slots(self, engine):
        reminder = make_reminder(end_date=date(2024, 6, 9))
        assert engine.has_period_ended(reminder, NOW)
        assert engine.slots_for_day(reminder, NOW, NOW) == []
        assert not engine.is_time_slot_overdue(reminder, "07:00", NOW)

    @pytest.mark.unit
    def test_inactive_reminder_never_overdue(self, engine):
        reminder = make_reminder(is_active=False)
        assert not engine.is_time_slot_overdue(reminder, "07:00", NOW)

    @pytest.mark.unit
    def test_missed_slots(self, engine):
        missed = engine.missed_slots(make_reminder(), datetime(2024, 6, 10, 21, 0))
        assert [s.time_of_day for s in missed] == [time(7, 0), time(19, 0)]


class TestToggle:

    @pytest.mark.unit
    def test_toggle_completes_slot(self, engine):
        toggled = engine.toggle_time_slot(make_reminder(), "07:00", NOW)

        assert engine.is_time_slot_completed(toggled, "07:00", NOW)
        assert toggled.completed_times == (datetime(2024, 6, 10, 7, 0),)

    @pytest.mark.unit
    def test_toggle_twice_restores_state(self, engine):
        reminder = make_reminder(completed=[datetime(2024, 6, 9, 19, 0)])

        once = engine.toggle_time_slot(reminder, "7:00 AM", NOW)
        twice = engine.toggle_time_slot(once, "07:00", NOW)

        assert twice.completed_times == reminder.completed_times

    @pytest.mark.unit
    def test_reopen_removes_duplicate_completions(self, engine):
        reminder = make_reminder(completed=[datetime(2024, 6, 10, 7, 0), datetime(2024, 6, 10, 7, 0, 30)])
        reopened = engine.toggle_time_slot(reminder, "07:00", NOW)
        assert reopened.completed_times == ()

    @pytest.mark.unit
    def test_toggle_unknown_slot_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.toggle_time_slot(make_reminder(), "09:00", NOW)

    @pytest.mark.unit
    def test_toggle_does_not_mutate_input(self, engine):
        reminder = make_reminder()
        engine.toggle_time_slot(reminder, "07:00", NOW)
        assert reminder.completed_times == ()


class TestDailyReset:

    @pytest.mark.unit
    def test_reset_on_new_day(self, engine):
        reminder = make_reminder(
            completed=[datetime(2024, 6, 9, 7, 0)],
            last_reset=datetime(2024, 6, 9, 6, 0)
        )
        reset, changed = engine.reset_completed_times_if_needed(reminder, NOW)

        assert changed
        assert reset.completed_times == ()
        assert reset.last_reset_date == NOW

    @pytest.mark.unit
    def test_reset_once_per_day(self, engine):
        reminder = make_reminder(last_reset=datetime(2024, 6, 9, 6, 0))
        first, _ = engine.reset_completed_times_if_needed(reminder, NOW)
        completed = engine.toggle_time_slot(first, "07:00", NOW)

        again, changed = engine.reset_completed_times_if_needed(completed, datetime(2024, 6, 10, 22, 0))

        assert not changed
        assert again.completed_times == completed.completed_times

    @pytest.mark.unit
    def test_never_reset_reminder_resets(self, engine):
        _, changed = engine.reset_completed_times_if_needed(make_reminder(last_reset=None), NOW)
        assert changed


class TestSummary:

    @pytest.mark.unit
    def test_summary_counts(self, engine):
        reminders = [
            make_reminder(completed=[datetime(2024, 6, 10, 7, 0)]),
            make_reminder(id=2, times=("06:00",)),
            make_reminder(id=3, end_date=date(2024, 6, 1)),
        ]
        summary = engine.summary(reminders, NOW)

        assert summary.active_reminders == 2
        assert summary.total_slots == 3
        assert summary.completed == 1
        assert summary.overdue == 1
        assert summary.pending == 1
