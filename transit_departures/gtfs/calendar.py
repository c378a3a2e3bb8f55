"""Calendar parsing and service pattern naming."""

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime

from transit_departures.gtfs.models import CalendarWindow, ScheduleRecord

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Named weekday patterns, Monday first
NAMED_PATTERNS: dict[tuple[bool, ...], str] = {
    (True, True, True, True, True, False, False): "weekday",
    (False, False, False, False, False, True, False): "saturday",
    (False, False, False, False, False, False, True): "sunday",
    (False, False, False, False, False, True, True): "weekend",
    (True, True, True, True, True, True, True): "daily",
}


def parse_gtfs_date(value: str) -> date:
    """Parse a GTFS YYYYMMDD date."""
    try:
        return datetime.strptime(value.strip(), "%Y%m%d").date()
    except ValueError as e:
        raise ValueError(f"Invalid date format: {value}") from e


def window_from_row(row: dict[str, str]) -> CalendarWindow:
    """Build a CalendarWindow from a calendar.txt row."""
    flags = {day: row[day].strip() == "1" for day in WEEKDAYS}
    return CalendarWindow(
        **flags,
        start_date=parse_gtfs_date(row["start_date"]),
        end_date=parse_gtfs_date(row["end_date"]),
    )


def describe_pattern(window: CalendarWindow) -> str:
    """
    Name the weekday pattern of a calendar window.

    Common patterns get a stable name (weekday, saturday, sunday, weekend,
    daily); anything else is described by its active days, e.g. "Mon, Wed".
    A window active on no day at all is "never".
    """
    name = NAMED_PATTERNS.get(window.flags)
    if name is not None:
        return name

    days_active = [
        day[:3].capitalize() for day, active in zip(WEEKDAYS, window.flags) if active
    ]
    if not days_active:
        return "never"
    return ", ".join(days_active)


def summarize_patterns(records: Iterable[ScheduleRecord]) -> dict[str, int]:
    """Count records per service pattern."""
    counter = Counter(describe_pattern(record.calendar) for record in records)
    return dict(sorted(counter.items()))
