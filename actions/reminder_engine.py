"""
Reminder Engine
Per time-slot state machine for checkup reminders with a daily reset
"""

import logging
from typing import List, Dict, Any, Iterable, Tuple, Union
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from enum import Enum

from actions.periods import combine, is_same_day, parse_time_of_day, start_of_day, time_key
from actions.snapshots import ReminderSnapshot


logger = logging.getLogger(__name__)


class SlotState(str, Enum):
    """
    State of a (reminder, time slot, day).

    MISSED is inferred for past days when reporting; it is never stored.
    """
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    MISSED = "missed"


@dataclass(frozen=True)
class ReminderSlot:
    """A reminder time slot projected onto a day"""
    reminder_id: int
    title: str
    time_of_day: time
    scheduled_at: datetime
    state: SlotState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reminder_id": self.reminder_id,
            "title": self.title,
            "time": self.time_of_day.strftime("%H:%M"),
            "scheduled_at": self.scheduled_at.isoformat(),
            "state": self.state.value
        }


@dataclass
class ReminderSummary:
    """Counts of today's reminder slots"""
    active_reminders: int = 0
    total_slots: int = 0
    completed: int = 0
    overdue: int = 0
    pending: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_reminders": self.active_reminders,
            "total_slots": self.total_slots,
            "completed": self.completed,
            "overdue": self.overdue,
            "pending": self.pending
        }


class ReminderEngine:
    """
    Reminder slot state machine.

    Pending -> Completed when the user marks it done, Pending -> Overdue once
    the slot time has passed, Overdue -> Completed is still allowed. A slot
    left Pending or Overdue at the end of its day reports as Missed.
    """

    def has_period_ended(self, reminder: ReminderSnapshot, now: datetime) -> bool:
        return start_of_day(reminder.end_date) < start_of_day(now)

    def is_future_reminder(self, reminder: ReminderSnapshot, now: datetime) -> bool:
        return start_of_day(reminder.start_date) > start_of_day(now)

    def is_active_on(self, reminder: ReminderSnapshot, day: Union[date, datetime]) -> bool:
        if not reminder.is_active:
            return False
        target = start_of_day(day)
        return start_of_day(reminder.start_date) <= target <= start_of_day(reminder.end_date)

    def slot_times(self, reminder: ReminderSnapshot) -> List[time]:
        """Parsable slot times of the reminder, sorted and de-duplicated"""
        parsed = set()
        for value in reminder.times:
            slot_time = parse_time_of_day(value)
            if slot_time is None:
                logger.debug(f"Skipping unparsable time {value!r} of reminder {reminder.id}")
                continue
            parsed.add(slot_time)
        return sorted(parsed)

    def is_time_slot_completed(
        self,
        reminder: ReminderSnapshot,
        slot_time: Any,
        day: Union[date, datetime]
    ) -> bool:
        """A completion with the same hour/minute exists on the same calendar day"""
        key = time_key(slot_time)
        if key is None:
            return False
        return any(
            is_same_day(completed, day) and time_key(completed) == key
            for completed in reminder.completed_times
        )

    def is_time_slot_overdue(self, reminder: ReminderSnapshot, slot_time: Any, now: datetime) -> bool:
        if not reminder.is_active:
            return False
        if self.has_period_ended(reminder, now) or self.is_future_reminder(reminder, now):
            return False
        scheduled_at = combine(now, slot_time)
        if scheduled_at is None or scheduled_at >= now:
            return False
        return not self.is_time_slot_completed(reminder, slot_time, now)

    def slot_state(
        self,
        reminder: ReminderSnapshot,
        slot_time: Any,
        day: Union[date, datetime],
        now: datetime
    ) -> SlotState:
        completed = self.is_time_slot_completed(reminder, slot_time, day)
        target = start_of_day(day)
        today = start_of_day(now)

        if target > today:
            return SlotState.PENDING
        if target < today:
            return SlotState.COMPLETED if completed else SlotState.MISSED
        if completed:
            return SlotState.COMPLETED
        if self.is_time_slot_overdue(reminder, slot_time, now):
            return SlotState.OVERDUE
        return SlotState.PENDING

    def slots_for_day(
        self,
        reminder: ReminderSnapshot,
        day: Union[date, datetime],
        now: datetime
    ) -> List[ReminderSlot]:
        """Every slot of the day with its state; empty when the reminder is inactive that day"""
        if not self.is_active_on(reminder, day):
            return []
        return [
            ReminderSlot(
                reminder_id=reminder.id,
                title=reminder.title,
                time_of_day=slot_time,
                scheduled_at=combine(day, slot_time),
                state=self.slot_state(reminder, slot_time, day, now)
            )
            for slot_time in self.slot_times(reminder)
        ]

    def toggle_time_slot(self, reminder: ReminderSnapshot, slot_time: Any, now: datetime) -> ReminderSnapshot:
        """
        Complete or reopen today's slot.

        A completed slot is reopened by removing every completion for that
        slot today; otherwise a single normalized timestamp is appended.
        """
        parsed = parse_time_of_day(slot_time)
        if parsed is None or parsed not in self.slot_times(reminder):
            raise ValueError(f"{slot_time!r} is not a time slot of reminder {reminder.id}")

        key = time_key(parsed)
        if self.is_time_slot_completed(reminder, parsed, now):
            remaining = tuple(
                completed for completed in reminder.completed_times
                if not (is_same_day(completed, now) and time_key(completed) == key)
            )
            logger.debug(f"Reopened slot {key} of reminder {reminder.id}")
            return replace(reminder, completed_times=remaining)

        logger.debug(f"Completed slot {key} of reminder {reminder.id}")
        return replace(
            reminder,
            completed_times=reminder.completed_times + (combine(now, parsed),)
        )

    def reset_completed_times_if_needed(
        self,
        reminder: ReminderSnapshot,
        now: datetime
    ) -> Tuple[ReminderSnapshot, bool]:
        """
        Clear completions once per calendar day.

        Returns the (possibly unchanged) reminder and whether it changed.
        """
        if reminder.last_reset_date is not None and is_same_day(reminder.last_reset_date, now):
            return reminder, False
        return replace(reminder, completed_times=(), last_reset_date=now), True

    def missed_slots(self, reminder: ReminderSnapshot, now: datetime) -> List[ReminderSlot]:
        """Today's overdue slots that were not completed"""
        return [s for s in self.slots_for_day(reminder, now, now) if s.state == SlotState.OVERDUE]

    def summary(self, reminders: Iterable[ReminderSnapshot], now: datetime) -> ReminderSummary:
        result = ReminderSummary()
        for reminder in reminders:
            slots = self.slots_for_day(reminder, now, now)
            if not self.is_active_on(reminder, now):
                continue
            result.active_reminders += 1
            result.total_slots += len(slots)
            for slot in slots:
                if slot.state == SlotState.COMPLETED:
                    result.completed += 1
                elif slot.state == SlotState.OVERDUE:
                    result.overdue += 1
                else:
                    result.pending += 1
        return result


# Singleton instance
reminder_engine = ReminderEngine()
