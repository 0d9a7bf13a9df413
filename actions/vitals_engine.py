"""
Vitals Engine
Latest readings, period averages and status for blood pressure and sugar
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from dataclasses import dataclass
from datetime import datetime

from config import settings as app_settings
from actions.adherence_engine import round_half_up
from actions.alert_engine import bp_status, sugar_status
from actions.periods import PeriodKind, period_window
from actions.snapshots import AlertSettingsSnapshot, VitalReadingSnapshot, VitalType


logger = logging.getLogger(__name__)


@dataclass
class VitalsSummary:
    """Vitals over a reporting window"""
    period: PeriodKind
    window_start: datetime
    window_end: datetime
    latest_bp: Optional[VitalReadingSnapshot] = None
    latest_sugar: Optional[VitalReadingSnapshot] = None
    bp_status: Optional[str] = None
    sugar_status: Optional[str] = None
    average_systolic: Optional[int] = None
    average_diastolic: Optional[int] = None
    average_sugar: Optional[int] = None
    bp_count: int = 0
    sugar_count: int = 0

    @property
    def average_bp_display(self) -> str:
        if self.average_systolic is None:
            return "N/A"
        return f"{self.average_systolic}/{self.average_diastolic}"

    def to_dict(self) -> Dict[str, Any]:
        def reading(r: Optional[VitalReadingSnapshot]) -> Optional[Dict[str, Any]]:
            if r is None:
                return None
            return {
                "id": r.id,
                "recorded_at": r.recorded_at.isoformat(),
                "value": r.describe()
            }

        return {
            "period": self.period.value,
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "latest_bp": reading(self.latest_bp),
            "latest_sugar": reading(self.latest_sugar),
            "bp_status": self.bp_status,
            "sugar_status": self.sugar_status,
            "average_bp": self.average_bp_display,
            "average_systolic": self.average_systolic,
            "average_diastolic": self.average_diastolic,
            "average_sugar": self.average_sugar,
            "bp_count": self.bp_count,
            "sugar_count": self.sugar_count
        }


def _average(values: List[float]) -> Optional[int]:
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def _latest(readings: List[VitalReadingSnapshot]) -> Optional[VitalReadingSnapshot]:
    latest = None
    for reading in readings:
        if latest is None or reading.recorded_at >= latest.recorded_at:
            latest = reading
    return latest


class VitalsEngine:
    """Summaries for the vitals and health report screens"""

    def __init__(self, use_context_sugar_thresholds: bool = False):
        self.use_context_sugar_thresholds = use_context_sugar_thresholds

    def summarize(
        self,
        readings: Iterable[VitalReadingSnapshot],
        kind: PeriodKind,
        now: datetime,
        settings: AlertSettingsSnapshot
    ) -> VitalsSummary:
        kind = PeriodKind(kind)
        start, end = period_window(kind, now)
        in_window = [r for r in readings if start <= r.recorded_at <= end]

        bp = [r for r in in_window if r.vital_type == VitalType.BP]
        sugar = [r for r in in_window if r.vital_type == VitalType.SUGAR]

        summary = VitalsSummary(
            period=kind,
            window_start=start,
            window_end=end,
            bp_count=len(bp),
            sugar_count=len(sugar),
            average_systolic=_average([r.systolic for r in bp if r.systolic is not None]),
            average_diastolic=_average([r.diastolic for r in bp if r.diastolic is not None]),
            average_sugar=_average([r.sugar_level for r in sugar if r.sugar_level is not None])
        )

        summary.latest_bp = _latest(bp)
        if summary.latest_bp is not None:
            summary.bp_status = bp_status(summary.latest_bp, settings)

        summary.latest_sugar = _latest(sugar)
        if summary.latest_sugar is not None:
            summary.sugar_status = sugar_status(
                summary.latest_sugar, settings, self.use_context_sugar_thresholds
            )

        logger.debug(
            f"{kind.value} vitals for user {settings.user_id}: "
            f"{summary.bp_count} BP, {summary.sugar_count} sugar readings"
        )
        return summary


# Singleton instance
vitals_engine = VitalsEngine(use_context_sugar_thresholds=app_settings.USE_CONTEXT_SUGAR_THRESHOLDS)
