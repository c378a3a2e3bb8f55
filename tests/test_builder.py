"""Tests for schedule building."""

from collections import Counter
from datetime import date

import pytest

from transit_departures.gtfs.feed import FeedSnapshot
from transit_departures.gtfs.models import (
    Calendar,
    CalendarWindow,
    Route,
    ScheduleRecord,
    Stop,
    StopSchedule,
    StopTime,
    Trip,
)
from transit_departures.schedule.builder import build_schedule, collect_route_records


def test_build_minimal_stop(feed_minimal: FeedSnapshot) -> None:
    """Test records of a stop served by two trips."""
    result = build_schedule(feed_minimal, feed_minimal.stop("A"))
    schedule = result.schedule

    assert schedule.stop_id == "A"
    assert schedule.name == "Alpha"
    assert schedule.terminus == "Charlie"
    assert result.skipped_count == 0

    by_trip = {record.trip_id: record for record in schedule.records}
    assert set(by_trip) == {"T1", "T2"}
    assert by_trip["T1"].route_label == "1"
    assert by_trip["T1"].trip_service_ref == "DAILY"
    assert by_trip["T1"].scheduled_offset == 28800
    assert by_trip["T2"].trip_service_ref == "WEEKDAY"
    assert by_trip["T2"].calendar.saturday is False


def test_build_keeps_untimed_records(feed_minimal: FeedSnapshot) -> None:
    """Test stop times without timing still produce records."""
    schedule = build_schedule(feed_minimal, feed_minimal.stop("B")).schedule

    offsets = sorted(
        (record.scheduled_offset for record in schedule.records),
        key=lambda offset: (offset is None, offset),
    )
    assert offsets == [29400, None]


def test_build_record_locality(feed_branching: FeedSnapshot) -> None:
    """Test every record names the stop it was built for."""
    for stop in feed_branching.stops:
        schedule = build_schedule(feed_branching, stop).schedule
        assert all(record.stop_display_name == stop.name for record in schedule.records)


def test_build_skips_missing_calendar(feed_branching: FeedSnapshot) -> None:
    """Test a trip without calendar is skipped and reported."""
    result = build_schedule(feed_branching, feed_branching.stop("B"))

    assert {record.trip_id for record in result.schedule.records} == {"T1", "T2", "T3"}
    assert result.skipped_count == 1
    skipped = result.skipped[0]
    assert skipped.trip_id == "T4"
    assert skipped.service_id == "GHOST"
    assert skipped.route_id == "R2"
    assert "GHOST" in skipped.reason


def test_build_route_label_fallback(feed_branching: FeedSnapshot) -> None:
    """Test routes without short name use the long name."""
    schedule = build_schedule(feed_branching, feed_branching.stop("B")).schedule
    labels = {record.trip_id: record.route_label for record in schedule.records}
    assert labels == {"T1": "1", "T2": "Night Line", "T3": "Night Line"}


def test_build_past_midnight_offset(feed_branching: FeedSnapshot) -> None:
    """Test offsets over 24h are kept as is."""
    schedule = build_schedule(feed_branching, feed_branching.stop("B")).schedule
    night = next(record for record in schedule.records if record.trip_id == "T3")
    assert night.scheduled_offset == 25 * 3600 + 10 * 60


def test_build_unserved_stop_is_empty(feed_branching: FeedSnapshot) -> None:
    """Test a stop without trips yields an empty schedule."""
    result = build_schedule(feed_branching, feed_branching.stop("F"))

    assert result.schedule.records == ()
    assert result.schedule.terminus == "Foxtrot"
    assert result.skipped == ()


def test_build_uses_given_terminus(feed_branching: FeedSnapshot) -> None:
    """Test a precomputed terminus name is used unchanged."""
    result = build_schedule(feed_branching, feed_branching.stop("B"), terminus="Echo")
    assert result.schedule.terminus == "Echo"


@pytest.mark.parametrize("jobs", [0, 1, 4])
def test_build_is_deterministic(feed_branching: FeedSnapshot, jobs: int) -> None:
    """Test repeated builds give the same set of records."""
    bravo = feed_branching.stop("B")
    first = build_schedule(feed_branching, bravo, jobs=jobs).schedule
    second = build_schedule(feed_branching, bravo, jobs=jobs).schedule

    assert Counter(first.records) == Counter(second.records)


def test_build_loop_trip_visits_twice(every_day_2024: CalendarWindow) -> None:
    """Test a trip passing a stop twice yields two records."""
    feed = FeedSnapshot.from_tables(
        stops=[Stop("A", "Alpha"), Stop("B", "Bravo")],
        routes=[Route("R1", "L")],
        trips=[Trip("T1", "R1", "S1")],
        stop_times=[
            StopTime("T1", "A", 100, 100, 1),
            StopTime("T1", "B", 200, 200, 2),
            StopTime("T1", "A", 300, 300, 3),
        ],
        calendars=[Calendar("S1", every_day_2024)],
    )

    schedule = build_schedule(feed, feed.stop("A")).schedule

    assert sorted(record.scheduled_offset for record in schedule.records) == [100, 300]
    assert schedule.terminus == "Alpha"


def test_build_many_routes(every_day_2024: CalendarWindow) -> None:
    """Test records from every route are merged."""
    routes = [Route(f"R{i:02d}", str(i)) for i in range(25)]
    trips = [Trip(f"T{i:02d}", route.route_id, "S1") for i, route in enumerate(routes)]
    stop_times = []
    for i, trip in enumerate(trips):
        stop_times.append(StopTime(trip.trip_id, "A", 60 * i, 60 * i, 1))
        stop_times.append(StopTime(trip.trip_id, "B", 60 * i + 30, 60 * i + 30, 2))
    feed = FeedSnapshot.from_tables(
        stops=[Stop("A", "Alpha"), Stop("B", "Bravo")],
        routes=routes,
        trips=trips,
        stop_times=stop_times,
        calendars=[Calendar("S1", every_day_2024)],
    )

    schedule = build_schedule(feed, feed.stop("A"), jobs=4).schedule

    assert len(schedule.records) == 25
    assert {record.route_label for record in schedule.records} == {str(i) for i in range(25)}


def test_collect_route_records_other_route(feed_branching: FeedSnapshot) -> None:
    """Test a route not serving the stop contributes nothing."""
    records, skipped = collect_route_records(
        feed_branching, feed_branching.routes_by_id["R1"], feed_branching.stop("E")
    )
    assert records == []
    assert skipped == []


def test_schedule_rejects_foreign_record(every_day_2024: CalendarWindow) -> None:
    """Test a schedule refuses records naming another stop."""
    record = ScheduleRecord("1", "S1", "T1", every_day_2024, 100, "Bravo")
    with pytest.raises(ValueError):
        StopSchedule(stop_id="A", name="Alpha", terminus="Charlie", records=(record,))


def test_calendar_window_dates(feed_minimal: FeedSnapshot) -> None:
    """Test records carry the service date range."""
    schedule = build_schedule(feed_minimal, feed_minimal.stop("C")).schedule
    for record in schedule.records:
        assert record.calendar.start_date == date(2024, 1, 1)
        assert record.calendar.end_date == date(2024, 12, 31)
