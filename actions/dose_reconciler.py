"""
Dose Log Reconciler
Classifies due doses as taken, missed or pending and records outcomes
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Union
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from actions.dose_resolver import DueDose, dose_resolver
from actions.periods import start_of_day
from actions.snapshots import DoseLogSnapshot, MedicineSnapshot, ScheduledDoseSnapshot


logger = logging.getLogger(__name__)


class DoseState(str, Enum):
    """Reconciled state of a scheduled dose on a day"""
    TAKEN = "taken"
    MISSED = "missed"
    PENDING = "pending"


@dataclass(frozen=True)
class ReconciledDose:
    """A dose of a day together with its reconciled state"""
    due: DueDose
    state: DoseState
    event: Optional[DoseLogSnapshot] = None

    @property
    def recorded(self) -> bool:
        """False for a missed dose that has not been materialized yet"""
        return self.event is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medicine_id": self.due.medicine_id,
            "scheduled_dose_id": self.due.dose.id,
            "scheduled_at": self.due.scheduled_at.isoformat(),
            "state": self.state.value,
            "recorded": self.recorded,
            "event_id": self.event.id if self.event else None
        }


class DoseLogStore(ABC):
    """
    Persistence collaborator for dose log events.

    Implementations must make (scheduled_dose_id, day) unique so that two
    concurrent callers cannot both insert an event for the same key.
    """

    @abstractmethod
    def find_dose_event(self, scheduled_dose_id: int, day: datetime) -> Optional[DoseLogSnapshot]:
        """Event for the dose on the calendar day starting at day, if any"""

    @abstractmethod
    def insert_dose_event(self, event: DoseLogSnapshot) -> DoseLogSnapshot:
        """Insert and return the stored event"""

    @abstractmethod
    def update_dose_event(
        self,
        event: DoseLogSnapshot,
        is_taken: bool,
        taken_at: Optional[datetime]
    ) -> DoseLogSnapshot:
        """Flip an existing event and return it"""

    @abstractmethod
    def delete_dose_event(self, event: DoseLogSnapshot) -> None:
        """Remove an existing event"""


class DoseLogReconciler:
    """
    Cross-references due doses with dose log events.

    Queries are side-effect free. The only writes go through an explicit
    DoseLogStore passed to materialize_missed and the mark/toggle commands.
    """

    def find_event(
        self,
        logs: Iterable[DoseLogSnapshot],
        scheduled_dose_id: int,
        day: Union[date, datetime]
    ) -> Optional[DoseLogSnapshot]:
        target = start_of_day(day)
        for log in logs:
            if log.scheduled_dose_id == scheduled_dose_id and start_of_day(log.date_recorded) == target:
                return log
        return None

    def reconcile(
        self,
        due: Iterable[DueDose],
        logs: Iterable[DoseLogSnapshot]
    ) -> List[ReconciledDose]:
        """
        Classify due doses.

        Due doses are never in the future, so a due dose without an event
        is missed but not yet recorded.
        """
        logs = list(logs)
        reconciled = []
        for item in due:
            event = self.find_event(logs, item.dose.id, item.scheduled_at)
            if event is None:
                state = DoseState.MISSED
            elif event.is_taken:
                state = DoseState.TAKEN
            else:
                state = DoseState.MISSED
            reconciled.append(ReconciledDose(due=item, state=state, event=event))
        return reconciled

    def reconcile_day(
        self,
        medicine: MedicineSnapshot,
        day: Union[date, datetime],
        now: datetime
    ) -> List[ReconciledDose]:
        """Reconciled states of the doses due on the day"""
        return self.reconcile(dose_resolver.due_doses(medicine, day, now), medicine.logs)

    def day_view(
        self,
        medicine: MedicineSnapshot,
        day: Union[date, datetime],
        now: datetime
    ) -> List[ReconciledDose]:
        """
        Every dose of the day: due doses reconciled, later doses pending
        unless the user already logged them.
        """
        if not dose_resolver.is_active_on(medicine, day):
            return []
        view = []
        for item in dose_resolver.scheduled_doses(medicine, day):
            if item.scheduled_at <= now:
                view.extend(self.reconcile([item], medicine.logs))
                continue
            event = self.find_event(medicine.logs, item.dose.id, day)
            if event is not None and event.is_taken:
                state = DoseState.TAKEN
            else:
                state = DoseState.PENDING
            view.append(ReconciledDose(due=item, state=state, event=event))
        return view

    def missed(
        self,
        medicine: MedicineSnapshot,
        day: Union[date, datetime],
        now: datetime
    ) -> List[ReconciledDose]:
        return [r for r in self.reconcile_day(medicine, day, now) if r.state == DoseState.MISSED]

    def materialize_missed(
        self,
        medicine: MedicineSnapshot,
        day: Union[date, datetime],
        now: datetime,
        store: DoseLogStore
    ) -> List[DoseLogSnapshot]:
        """
        Persist a missed event for every due dose that has none.

        Looks up the store before each insert, so repeated calls for the
        same day never create a second event for a dose.
        """
        recorded_day = start_of_day(day)
        created = []
        for item in dose_resolver.due_doses(medicine, day, now):
            if store.find_dose_event(item.dose.id, recorded_day) is not None:
                continue
            event = DoseLogSnapshot(
                scheduled_dose_id=item.dose.id,
                medicine_id=medicine.id,
                date_recorded=recorded_day,
                is_taken=False,
                logged_by="system"
            )
            created.append(store.insert_dose_event(event))

        if created:
            logger.info(
                f"Materialized {len(created)} missed dose(s) for medicine "
                f"{medicine.id} on {recorded_day.date().isoformat()}"
            )
        return created

    def _require_dose(self, medicine: MedicineSnapshot, scheduled_dose_id: int) -> ScheduledDoseSnapshot:
        dose = dose_resolver.find_dose(medicine, scheduled_dose_id)
        if dose is None:
            raise ValueError(
                f"Scheduled dose {scheduled_dose_id} does not belong to medicine {medicine.id}"
            )
        return dose

    def _set_outcome(
        self,
        medicine: MedicineSnapshot,
        scheduled_dose_id: int,
        day: Union[date, datetime],
        is_taken: bool,
        store: DoseLogStore,
        now: datetime
    ) -> DoseLogSnapshot:
        dose = self._require_dose(medicine, scheduled_dose_id)
        recorded_day = start_of_day(day)
        taken_at = now if is_taken else None

        existing = store.find_dose_event(dose.id, recorded_day)
        if existing is not None:
            if existing.is_taken == is_taken:
                return existing
            return store.update_dose_event(existing, is_taken=is_taken, taken_at=taken_at)

        return store.insert_dose_event(DoseLogSnapshot(
            scheduled_dose_id=dose.id,
            medicine_id=medicine.id,
            date_recorded=recorded_day,
            is_taken=is_taken,
            taken_at=taken_at,
            logged_by="user"
        ))

    def mark_taken(
        self,
        medicine: MedicineSnapshot,
        scheduled_dose_id: int,
        day: Union[date, datetime],
        store: DoseLogStore,
        now: datetime
    ) -> DoseLogSnapshot:
        """Upsert a taken event for (dose, day)"""
        return self._set_outcome(medicine, scheduled_dose_id, day, True, store, now)

    def mark_missed(
        self,
        medicine: MedicineSnapshot,
        scheduled_dose_id: int,
        day: Union[date, datetime],
        store: DoseLogStore,
        now: datetime
    ) -> DoseLogSnapshot:
        """Upsert a missed event for (dose, day)"""
        return self._set_outcome(medicine, scheduled_dose_id, day, False, store, now)

    def toggle_taken(
        self,
        medicine: MedicineSnapshot,
        scheduled_dose_id: int,
        day: Union[date, datetime],
        store: DoseLogStore,
        now: datetime
    ) -> Optional[DoseLogSnapshot]:
        """
        Flip the taken state of (dose, day).

        No event: record it as taken. Taken: delete the event (reopen).
        Missed: flip it to taken. Returns the resulting event, or None
        when the event was deleted.
        """
        dose = self._require_dose(medicine, scheduled_dose_id)
        recorded_day = start_of_day(day)

        existing = store.find_dose_event(dose.id, recorded_day)
        if existing is None:
            return self.mark_taken(medicine, scheduled_dose_id, day, store, now)
        if existing.is_taken:
            store.delete_dose_event(existing)
            return None
        return store.update_dose_event(existing, is_taken=True, taken_at=now)


# Singleton instance
dose_reconciler = DoseLogReconciler()
