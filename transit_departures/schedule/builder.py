"""Per-stop schedule construction."""

import logging
from concurrent.futures import ThreadPoolExecutor

from transit_departures.errors import MissingCalendarError
from transit_departures.gtfs.feed import FeedSnapshot
from transit_departures.gtfs.models import (
    Route,
    ScheduleBuild,
    ScheduleRecord,
    SkippedRecord,
    Stop,
    StopSchedule,
)
from transit_departures.schedule.terminus import resolve_terminus

logger = logging.getLogger(__name__)

RouteResult = tuple[list[ScheduleRecord], list[SkippedRecord]]


def collect_route_records(feed: FeedSnapshot, route: Route, stop: Stop) -> RouteResult:
    """Records for one route at one stop, accumulated locally."""
    records: list[ScheduleRecord] = []
    skipped: list[SkippedRecord] = []

    for trip in feed.trips_for_route(route.route_id):
        for st in feed.stop_times(trip.trip_id):
            if st.stop_id != stop.stop_id:
                continue

            try:
                calendar = feed.calendar(trip.service_id)
            except MissingCalendarError as e:
                logger.warning(f"Skipping trip {trip.trip_id} at stop {stop.stop_id}: {e}")
                skipped.append(
                    SkippedRecord(
                        route_id=route.route_id,
                        trip_id=trip.trip_id,
                        service_id=trip.service_id,
                        reason=str(e),
                    )
                )
                continue

            records.append(
                ScheduleRecord(
                    route_label=route.label,
                    trip_service_ref=trip.service_id,
                    trip_id=trip.trip_id,
                    calendar=calendar,
                    scheduled_offset=st.arrival_time,
                    stop_display_name=feed.stop(st.stop_id).name,
                )
            )

    if records or skipped:
        logger.debug(
            f"Route {route.route_id}: {len(records)} records, {len(skipped)} skipped "
            f"at stop {stop.stop_id}"
        )
    return records, skipped


def build_schedule(
    feed: FeedSnapshot,
    stop: Stop,
    jobs: int = 0,
    terminus: str | None = None,
) -> ScheduleBuild:
    """
    Build the full schedule of a stop.

    Routes are fanned out over a thread pool; each worker reads the shared
    snapshot and returns its own record list, and the lists are joined once
    every route is done. Stop times whose service has no calendar are left
    out and reported in the result instead of failing the build.

    Args:
        feed: Feed snapshot to read from
        stop: Stop to build the schedule for
        jobs: Number of worker threads, 0 for the executor default
        terminus: Terminus display name, resolved with the default rule when omitted

    Returns:
        ScheduleBuild with the schedule and any skipped stop times
    """
    if terminus is None:
        terminus = resolve_terminus(feed, stop).name

    routes = feed.routes
    with ThreadPoolExecutor(max_workers=jobs or None) as executor:
        results = list(
            executor.map(lambda route: collect_route_records(feed, route, stop), routes)
        )

    records: list[ScheduleRecord] = []
    skipped: list[SkippedRecord] = []
    for route_records, route_skipped in results:
        records.extend(route_records)
        skipped.extend(route_skipped)

    schedule = StopSchedule(
        stop_id=stop.stop_id,
        name=stop.name,
        terminus=terminus,
        records=tuple(records),
    )

    logger.info(
        f"Built schedule for stop {stop.stop_id} ({stop.name}): "
        f"{len(records)} records from {len(routes)} routes, {len(skipped)} skipped"
    )
    return ScheduleBuild(schedule=schedule, skipped=tuple(skipped))
