"""
Dose Schedule Resolver
Decides which scheduled doses of a medicine are due on a given day
"""

import logging
from typing import List, Optional, Union
from dataclasses import dataclass
from datetime import date, datetime

from actions.periods import combine, start_of_day
from actions.snapshots import MedicineSnapshot, ScheduledDoseSnapshot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueDose:
    """A scheduled dose projected onto a specific day"""
    medicine_id: int
    dose: ScheduledDoseSnapshot
    scheduled_at: datetime

    @property
    def day(self) -> date:
        return self.scheduled_at.date()


class DoseScheduleResolver:
    """
    Resolves scheduled doses against a medicine's active window.

    All comparisons against the window are day-granular with inclusive
    start and end dates.
    """

    def is_active_on(self, medicine: MedicineSnapshot, day: Union[date, datetime]) -> bool:
        """Active flag set and day within [start_date, end_date]"""
        if not medicine.is_active:
            return False
        target = start_of_day(day)
        return start_of_day(medicine.start_date) <= target <= start_of_day(medicine.end_date)

    def has_period_ended(self, medicine: MedicineSnapshot, now: datetime) -> bool:
        return start_of_day(medicine.end_date) < start_of_day(now)

    def is_future_medicine(self, medicine: MedicineSnapshot, now: datetime) -> bool:
        return start_of_day(medicine.start_date) > start_of_day(now)

    def should_deactivate(self, medicine: MedicineSnapshot, now: datetime) -> bool:
        """Still flagged active although its treatment window has ended"""
        return medicine.is_active and self.has_period_ended(medicine, now)

    def scheduled_doses(
        self,
        medicine: MedicineSnapshot,
        day: Union[date, datetime]
    ) -> List[DueDose]:
        """Every parsable dose of the medicine projected onto the day, in time order"""
        projected = []
        for dose in medicine.doses:
            scheduled_at = combine(day, dose.time_of_day)
            if scheduled_at is None:
                logger.debug(
                    f"Skipping dose {dose.id} of medicine {medicine.id}: "
                    f"unparsable time {dose.time_of_day!r}"
                )
                continue
            projected.append(DueDose(
                medicine_id=medicine.id,
                dose=dose,
                scheduled_at=scheduled_at
            ))
        projected.sort(key=lambda d: (d.scheduled_at, d.dose.id))
        return projected

    def due_doses(
        self,
        medicine: MedicineSnapshot,
        day: Union[date, datetime],
        now: datetime
    ) -> List[DueDose]:
        """
        Doses due on the day as of now.

        A dose is due when the medicine is active on that day and its
        scheduled instant is at or before now.
        """
        if not self.is_active_on(medicine, day):
            return []
        return [d for d in self.scheduled_doses(medicine, day) if d.scheduled_at <= now]

    def find_dose(self, medicine: MedicineSnapshot, dose_id: int) -> Optional[ScheduledDoseSnapshot]:
        for dose in medicine.doses:
            if dose.id == dose_id:
                return dose
        return None

    def has_missed_dose_today(self, medicine: MedicineSnapshot, now: datetime) -> bool:
        """Any dose due today without a taken event"""
        today = start_of_day(now)
        taken = {
            log.scheduled_dose_id
            for log in medicine.logs
            if log.is_taken and start_of_day(log.date_recorded) == today
        }
        return any(d.dose.id not in taken for d in self.due_doses(medicine, now, now))


# Singleton instance
dose_resolver = DoseScheduleResolver()
