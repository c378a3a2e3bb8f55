"""Immutable, indexed snapshot of a GTFS feed."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from transit_departures.errors import FeedConsistencyError, MissingCalendarError, UnknownStopError
from transit_departures.gtfs.models import Calendar, CalendarWindow, Route, Stop, StopTime, Trip
from transit_departures.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSnapshot:
    """
    Read-only lookup over routes, trips, stop times, calendars and stops.

    Every mapping is a MappingProxyType and every sequence a tuple, so a
    snapshot can be shared between builder threads without locking. Trips
    are held in trip_id order, which is the canonical order used wherever
    a deterministic scan of the feed is needed.
    """

    routes_by_id: Mapping[str, Route]
    trips_by_id: Mapping[str, Trip]
    stops_by_id: Mapping[str, Stop]
    calendars_by_service: Mapping[str, CalendarWindow]
    stop_times_by_trip: Mapping[str, tuple[StopTime, ...]]
    trip_ids_by_route: Mapping[str, tuple[str, ...]]

    @classmethod
    def from_tables(
        cls,
        stops: Iterable[Stop],
        routes: Iterable[Route],
        trips: Iterable[Trip],
        stop_times: Iterable[StopTime],
        calendars: Iterable[Calendar] = (),
    ) -> "FeedSnapshot":
        """Index feed tables, checking that every reference resolves."""
        stops_by_id = {stop.stop_id: stop for stop in sorted(stops, key=lambda s: s.stop_id)}
        routes_by_id = {
            route.route_id: route for route in sorted(routes, key=lambda r: r.route_id)
        }
        trip_list = sorted(trips, key=lambda t: t.trip_id)
        trips_by_id = {trip.trip_id: trip for trip in trip_list}
        calendars_by_service = {cal.service_id: cal.window for cal in calendars}

        errors: list[str] = []

        if len(trips_by_id) != len(trip_list):
            duplicates = sorted(
                {a.trip_id for a, b in zip(trip_list, trip_list[1:]) if a.trip_id == b.trip_id}
            )
            errors.append(f"Duplicate trip ids {', '.join(duplicates)}")

        trip_ids_by_route: dict[str, list[str]] = {route_id: [] for route_id in routes_by_id}
        for trip in trips_by_id.values():
            if trip.route_id not in routes_by_id:
                errors.append(f"Trip {trip.trip_id} references non-existent route {trip.route_id}")
                continue
            trip_ids_by_route[trip.route_id].append(trip.trip_id)

        grouped: dict[str, list[StopTime]] = {trip_id: [] for trip_id in trips_by_id}
        for st in stop_times:
            if st.trip_id not in trips_by_id:
                errors.append(f"Stop times reference non-existent trip {st.trip_id}")
                continue
            if st.stop_id not in stops_by_id:
                errors.append(
                    f"Stop time for trip {st.trip_id} references non-existent stop {st.stop_id}"
                )
                continue
            grouped[st.trip_id].append(st)

        if errors:
            raise FeedConsistencyError(
                f"Feed has {len(errors)} unresolved references, first: {errors[0]}"
            )

        stop_times_by_trip = {
            trip_id: tuple(sorted(sts, key=lambda st: st.stop_sequence))
            for trip_id, sts in grouped.items()
        }

        snapshot = cls(
            routes_by_id=MappingProxyType(routes_by_id),
            trips_by_id=MappingProxyType(trips_by_id),
            stops_by_id=MappingProxyType(stops_by_id),
            calendars_by_service=MappingProxyType(calendars_by_service),
            stop_times_by_trip=MappingProxyType(stop_times_by_trip),
            trip_ids_by_route=MappingProxyType(
                {route_id: tuple(ids) for route_id, ids in trip_ids_by_route.items()}
            ),
        )
        logger.info(
            f"Indexed feed snapshot: {len(stops_by_id)} stops, {len(routes_by_id)} routes, "
            f"{len(trips_by_id)} trips, {len(calendars_by_service)} calendars"
        )
        return snapshot

    @classmethod
    def from_reader(cls, reader: GTFSReader) -> "FeedSnapshot":
        """Index the tables loaded by a GTFSReader."""
        return cls.from_tables(
            stops=reader.stops,
            routes=reader.routes,
            trips=reader.trips,
            stop_times=reader.stop_times,
            calendars=reader.calendar,
        )

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self.routes_by_id.values())

    @property
    def trips(self) -> tuple[Trip, ...]:
        return tuple(self.trips_by_id.values())

    @property
    def stops(self) -> tuple[Stop, ...]:
        return tuple(self.stops_by_id.values())

    def stop(self, stop_id: str) -> Stop:
        """Look up a stop by id."""
        try:
            return self.stops_by_id[stop_id]
        except KeyError:
            raise UnknownStopError(stop_id) from None

    def calendar(self, service_id: str) -> CalendarWindow:
        """Look up the calendar window of a service."""
        try:
            return self.calendars_by_service[service_id]
        except KeyError:
            raise MissingCalendarError(service_id) from None

    def trips_for_route(self, route_id: str) -> tuple[Trip, ...]:
        """Trips of a route, in trip_id order."""
        trip_ids = self.trip_ids_by_route.get(route_id, ())
        return tuple(self.trips_by_id[trip_id] for trip_id in trip_ids)

    def stop_times(self, trip_id: str) -> tuple[StopTime, ...]:
        """Stop times of a trip, in visiting order."""
        return self.stop_times_by_trip.get(trip_id, ())
