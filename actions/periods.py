"""
Time & Period Utilities
Day boundaries, time-of-day projection and reporting windows
"""

import logging
from typing import Any, Iterator, List, Optional, Tuple, Union
from datetime import datetime, date, time, timedelta
from enum import Enum

from config import engine_config


logger = logging.getLogger(__name__)

_TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p")


class PeriodKind(str, Enum):
    """Reporting periods"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _as_date(instant: Union[date, datetime]) -> date:
    if isinstance(instant, datetime):
        return instant.date()
    return instant


def start_of_day(instant: Union[date, datetime]) -> datetime:
    """Midnight of the calendar day containing the instant"""
    return datetime.combine(_as_date(instant), time.min)


def day_range(instant: Union[date, datetime]) -> Tuple[datetime, datetime]:
    """Start of the day and start of the next day (end exclusive)"""
    start = start_of_day(instant)
    return start, start + timedelta(days=1)


def is_same_day(a: Union[date, datetime], b: Union[date, datetime]) -> bool:
    return _as_date(a) == _as_date(b)


def parse_time_of_day(value: Any) -> Optional[time]:
    """
    Normalize a time-of-day value to hour/minute precision.

    Accepts time/datetime objects, "HH:MM", "HH:MM:SS", "h:mm AM" strings
    and (hour, minute) pairs. Returns None for anything malformed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return time(value.hour, value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if isinstance(value, str):
        text = value.strip().upper()
        for fmt in _TIME_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt).time()
                return time(parsed.hour, parsed.minute)
            except ValueError:
                continue
        return None
    if isinstance(value, (tuple, list)) and len(value) == 2:
        hour, minute = value
        if isinstance(hour, int) and isinstance(minute, int) and 0 <= hour <= 23 and 0 <= minute <= 59:
            return time(hour, minute)
    return None


def combine(day: Union[date, datetime], time_of_day: Any) -> Optional[datetime]:
    """
    Project a date-independent time of day onto a calendar day.

    Returns None when the time of day cannot be parsed; callers skip the
    dose or slot instead of failing.
    """
    parsed = parse_time_of_day(time_of_day)
    if parsed is None:
        return None
    return datetime.combine(_as_date(day), parsed)


def format_time_of_day(value: Any) -> str:
    """Display form used in alert bodies, e.g. "08:00 AM" """
    parsed = parse_time_of_day(value)
    if parsed is None:
        return str(value)
    return parsed.strftime(engine_config.DISPLAY_TIME_FORMAT)


def time_key(value: Any) -> Optional[str]:
    """Canonical "HH:MM" form of a time of day"""
    parsed = parse_time_of_day(value)
    return parsed.strftime("%H:%M") if parsed else None


def period_window(kind: PeriodKind, now: datetime) -> Tuple[datetime, datetime]:
    """
    Reporting window ending at now.

    Daily covers today only; weekly starts 6 days back and monthly 29 days
    back. These are fixed day offsets, not calendar weeks or months.
    """
    kind = PeriodKind(kind)
    if kind == PeriodKind.DAILY:
        offset = 0
    elif kind == PeriodKind.WEEKLY:
        offset = engine_config.WEEKLY_OFFSET_DAYS
    else:
        offset = engine_config.MONTHLY_OFFSET_DAYS
    return start_of_day(now - timedelta(days=offset)), now


def iter_days(start: Union[date, datetime], end: Union[date, datetime]) -> Iterator[date]:
    """Each calendar date from start to end, both inclusive"""
    current = _as_date(start)
    last = _as_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def parse_timing_string(timing: str) -> List[time]:
    """
    Parse a comma separated list of times ("9:00 AM, 9:00 PM").

    Invalid entries are skipped; the result is sorted and de-duplicated.
    """
    if not timing:
        return []
    parsed = set()
    for part in timing.split(","):
        value = parse_time_of_day(part)
        if value is None:
            if part.strip():
                logger.debug(f"Skipping unparsable time '{part.strip()}' in timing string")
            continue
        parsed.add(value)
    return sorted(parsed)
