"""
Adherence Engine
Aggregates reconciled dose states into adherence percentages
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional
from dataclasses import dataclass, field
from datetime import date, datetime

from actions.dose_reconciler import DoseState, dose_reconciler
from actions.periods import PeriodKind, iter_days, period_window, start_of_day
from actions.snapshots import DoseLogSnapshot, MedicineSnapshot


logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (87.5 -> 88)"""
    return int(math.floor(value + 0.5))


@dataclass
class AdherenceRatio:
    """Taken doses over counted doses"""
    taken: int = 0
    total: int = 0

    @property
    def percentage(self) -> Optional[int]:
        """None when nothing was counted"""
        if self.total == 0:
            return None
        return round_half_up(self.taken / self.total * 100)

    @property
    def display(self) -> str:
        percentage = self.percentage
        return NOT_AVAILABLE if percentage is None else f"{percentage}%"

    def add(self, taken: bool):
        self.total += 1
        if taken:
            self.taken += 1


@dataclass
class DailyAdherencePoint:
    """One day of a weekly or monthly chart series"""
    day: date
    taken: int
    total: int

    @property
    def percentage(self) -> int:
        # An empty day charts as 0%, unlike the overall "N/A"
        if self.total == 0:
            return 0
        return round_half_up(self.taken / self.total * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "taken": self.taken,
            "total": self.total,
            "percentage": self.percentage
        }


@dataclass
class MedicineAdherence:
    """Adherence of a single medicine over the period"""
    medicine_id: int
    name: str
    dosage: str
    ratio: AdherenceRatio = field(default_factory=AdherenceRatio)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medicine_id": self.medicine_id,
            "name": self.name,
            "dosage": self.dosage,
            "taken": self.ratio.taken,
            "total": self.ratio.total,
            "percentage": self.ratio.percentage,
            "display": self.ratio.display
        }


@dataclass
class AdherenceResult:
    """Adherence over a reporting window"""
    period: PeriodKind
    window_start: datetime
    window_end: datetime
    ratio: AdherenceRatio = field(default_factory=AdherenceRatio)
    per_medicine: List[MedicineAdherence] = field(default_factory=list)
    daily_series: List[DailyAdherencePoint] = field(default_factory=list)

    @property
    def percentage(self) -> Optional[int]:
        return self.ratio.percentage

    @property
    def display(self) -> str:
        return self.ratio.display

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period.value,
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "taken": self.ratio.taken,
            "total": self.ratio.total,
            "percentage": self.percentage,
            "display": self.display,
            "per_medicine": [m.to_dict() for m in self.per_medicine],
            "daily_series": [p.to_dict() for p in self.daily_series]
        }


class AdherenceEngine:
    """
    Adherence calculator.

    Daily adherence counts the doses due so far today. Weekly and monthly
    adherence count the dose log events recorded in the window, which
    materialization keeps in step with the doses that were due.
    """

    def daily(self, medicines: Iterable[MedicineSnapshot], now: datetime) -> AdherenceResult:
        start, end = period_window(PeriodKind.DAILY, now)
        result = AdherenceResult(period=PeriodKind.DAILY, window_start=start, window_end=end)

        for medicine in medicines:
            per_medicine = MedicineAdherence(
                medicine_id=medicine.id,
                name=medicine.name,
                dosage=medicine.dosage
            )
            for reconciled in dose_reconciler.reconcile_day(medicine, now, now):
                taken = reconciled.state == DoseState.TAKEN
                per_medicine.ratio.add(taken)
                result.ratio.add(taken)
            result.per_medicine.append(per_medicine)

        result.daily_series.append(DailyAdherencePoint(
            day=now.date(),
            taken=result.ratio.taken,
            total=result.ratio.total
        ))
        return result

    def _events_in_window(
        self,
        logs: Iterable[DoseLogSnapshot],
        start: datetime,
        end: datetime
    ) -> List[DoseLogSnapshot]:
        return [log for log in logs if start <= log.date_recorded <= end]

    def for_period(
        self,
        medicines: Iterable[MedicineSnapshot],
        kind: PeriodKind,
        now: datetime
    ) -> AdherenceResult:
        """Adherence for the daily, weekly or monthly window ending at now"""
        kind = PeriodKind(kind)
        medicines = list(medicines)
        if kind == PeriodKind.DAILY:
            return self.daily(medicines, now)

        start, end = period_window(kind, now)
        result = AdherenceResult(period=kind, window_start=start, window_end=end)
        points = {day: DailyAdherencePoint(day=day, taken=0, total=0) for day in iter_days(start, end)}

        for medicine in medicines:
            per_medicine = MedicineAdherence(
                medicine_id=medicine.id,
                name=medicine.name,
                dosage=medicine.dosage
            )
            for log in self._events_in_window(medicine.logs, start, end):
                per_medicine.ratio.add(log.is_taken)
                result.ratio.add(log.is_taken)
                point = points.get(start_of_day(log.date_recorded).date())
                if point is not None:
                    point.total += 1
                    if log.is_taken:
                        point.taken += 1
            result.per_medicine.append(per_medicine)

        result.daily_series = [points[day] for day in sorted(points)]
        logger.debug(
            f"{kind.value} adherence {result.display} "
            f"({result.ratio.taken}/{result.ratio.total}) over {len(points)} days"
        )
        return result


# Singleton instance
adherence_engine = AdherenceEngine()
