"""Departure selection from a stop schedule."""

import logging
import math
from datetime import datetime

from transit_departures.gtfs.models import ScheduleRecord, StopSchedule

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def seconds_since_midnight(moment: datetime) -> float:
    """Time of day of a moment in seconds, with sub-second precision."""
    return (
        moment.hour * 3600
        + moment.minute * 60
        + moment.second
        + moment.microsecond / 1_000_000
    )


def is_upcoming(record: ScheduleRecord, now: datetime, weekday: int) -> bool:
    """Check whether a record runs on the query day and has not departed yet."""
    if not record.calendar.covers(now.date()):
        return False

    if not record.calendar.runs_on(weekday):
        return False

    offset = record.scheduled_offset
    if offset is None:
        return False

    # Past-midnight runs of the previous service day are always shown
    if offset > SECONDS_PER_DAY:
        return True

    return offset >= seconds_since_midnight(now)


def query_departures(
    schedule: StopSchedule,
    now: datetime,
    weekday: int | None = None,
    limit: int = 3,
) -> list[ScheduleRecord]:
    """
    Select the next departures from a stop schedule.

    Args:
        schedule: Schedule of the stop
        now: Query instant
        weekday: Weekday to match calendars against (Monday is 0), defaults to now's
        limit: Maximum number of departures to return

    Returns:
        Upcoming records sorted by scheduled offset, at most limit of them
    """
    if limit < 0:
        raise ValueError(f"Departure limit must not be negative: {limit}")
    if weekday is None:
        weekday = now.weekday()

    upcoming = [record for record in schedule.records if is_upcoming(record, now, weekday)]
    upcoming.sort(key=lambda r: (r.scheduled_offset, r.route_label, r.trip_id))

    logger.debug(
        f"Stop {schedule.stop_id}: {len(upcoming)} of {len(schedule.records)} records "
        f"upcoming at {now.isoformat()}"
    )
    return upcoming[:limit]


def minutes_until(record: ScheduleRecord, now: datetime) -> int:
    """Whole minutes from now until the record's scheduled time."""
    if record.scheduled_offset is None:
        raise ValueError(f"Trip {record.trip_id} has no scheduled time at this stop")
    return math.floor((record.scheduled_offset - seconds_since_midnight(now)) / 60)
