"""
Actions Module
Pure engines for dose adherence, reminders, threshold alerts and digests
"""

from .snapshots import (
    VitalType,
    SugarContext,
    ReminderType,
    AlertType,
    AlertStatus,
    ScheduledDoseSnapshot,
    DoseLogSnapshot,
    MedicineSnapshot,
    ReminderSnapshot,
    VitalReadingSnapshot,
    AlertSettingsSnapshot,
    AlertKey,
    AlertRecord
)

from .periods import (
    PeriodKind,
    start_of_day,
    combine,
    period_window,
    parse_timing_string
)

from .dose_resolver import (
    DueDose,
    DoseScheduleResolver,
    dose_resolver
)

from .dose_reconciler import (
    DoseState,
    ReconciledDose,
    DoseLogStore,
    DoseLogReconciler,
    dose_reconciler
)

from .adherence_engine import (
    AdherenceResult,
    AdherenceEngine,
    adherence_engine
)

from .reminder_engine import (
    SlotState,
    ReminderSlot,
    ReminderSummary,
    ReminderEngine,
    reminder_engine
)

from .alert_engine import (
    AlertEngine,
    alert_engine
)

from .digest_engine import (
    compose_missed_dose_digest,
    compose_missed_reminder_digest
)

from .vitals_engine import (
    VitalsSummary,
    VitalsEngine,
    vitals_engine
)


__all__ = [
    # Snapshots
    "VitalType",
    "SugarContext",
    "ReminderType",
    "AlertType",
    "AlertStatus",
    "ScheduledDoseSnapshot",
    "DoseLogSnapshot",
    "MedicineSnapshot",
    "ReminderSnapshot",
    "VitalReadingSnapshot",
    "AlertSettingsSnapshot",
    "AlertKey",
    "AlertRecord",

    # Periods
    "PeriodKind",
    "start_of_day",
    "combine",
    "period_window",
    "parse_timing_string",

    # Dose resolution and reconciliation
    "DueDose",
    "DoseScheduleResolver",
    "dose_resolver",
    "DoseState",
    "ReconciledDose",
    "DoseLogStore",
    "DoseLogReconciler",
    "dose_reconciler",

    # Adherence Engine
    "AdherenceResult",
    "AdherenceEngine",
    "adherence_engine",

    # Reminder Engine
    "SlotState",
    "ReminderSlot",
    "ReminderSummary",
    "ReminderEngine",
    "reminder_engine",

    # Alert Engine
    "AlertEngine",
    "alert_engine",

    # Digests
    "compose_missed_dose_digest",
    "compose_missed_reminder_digest",

    # Vitals Engine
    "VitalsSummary",
    "VitalsEngine",
    "vitals_engine"
]
