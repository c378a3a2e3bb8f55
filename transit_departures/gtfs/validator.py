"""GTFS data validator."""

import logging

from transit_departures.gtfs.models import StopTime, ValidationReport
from transit_departures.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)


class GTFSValidator:
    """Validate GTFS data for consistency and correctness."""

    def __init__(self, reader: GTFSReader) -> None:
        """Initialize validator with GTFS reader."""
        self.reader = reader
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def validate(self) -> ValidationReport:
        """Run all validation checks."""
        logger.info("Validating GTFS data")

        self._validate_stops()
        self._validate_routes()
        self._validate_trips()
        self._validate_stop_times()

        valid = len(self.errors) == 0

        stats = {
            "stops": len(self.reader.stops),
            "routes": len(self.reader.routes),
            "trips": len(self.reader.trips),
            "stop_times": len(self.reader.stop_times),
            "calendars": len(self.reader.calendar),
        }

        report = ValidationReport(
            valid=valid,
            errors=self.errors.copy(),
            warnings=self.warnings.copy(),
            stats=stats,
        )

        if not valid:
            logger.error(f"Validation failed with {len(self.errors)} errors")
        elif self.warnings:
            logger.warning(f"Validation passed with {len(self.warnings)} warnings")
        else:
            logger.info("Validation passed")

        return report

    def _validate_stops(self) -> None:
        """Validate stops have unique ids, valid coordinates and names."""
        seen: set[str] = set()
        for stop in self.reader.stops:
            if stop.stop_id in seen:
                self.errors.append(f"Duplicate stop id {stop.stop_id}")
            seen.add(stop.stop_id)

            if not (-90 <= stop.lat <= 90):
                self.errors.append(f"Stop {stop.stop_id} has invalid latitude: {stop.lat}")
            if not (-180 <= stop.lon <= 180):
                self.errors.append(f"Stop {stop.stop_id} has invalid longitude: {stop.lon}")
            if not stop.name:
                self.warnings.append(f"Stop {stop.stop_id} has empty name")

    def _validate_routes(self) -> None:
        """Validate routes."""
        if not self.reader.routes:
            self.errors.append("No routes found in GTFS data")

        for route in self.reader.routes:
            if not route.route_short_name and not route.route_long_name:
                self.warnings.append(f"Route {route.route_id} has no name, using its id")

    def _validate_trips(self) -> None:
        """Validate trips have unique ids and reference valid routes and known services."""
        route_ids = {route.route_id for route in self.reader.routes}
        service_ids = {cal.service_id for cal in self.reader.calendar}

        seen: set[str] = set()
        for trip in self.reader.trips:
            if trip.trip_id in seen:
                self.errors.append(f"Duplicate trip id {trip.trip_id}")
            seen.add(trip.trip_id)

            if trip.route_id not in route_ids:
                self.errors.append(
                    f"Trip {trip.trip_id} references non-existent route {trip.route_id}"
                )
            if trip.service_id not in service_ids:
                self.warnings.append(
                    f"Trip {trip.trip_id} references service {trip.service_id} "
                    f"with no calendar entry"
                )

    def _validate_stop_times(self) -> None:
        """Validate stop_times are ordered and reference valid stops/trips."""
        stop_ids = {stop.stop_id for stop in self.reader.stops}
        trip_ids = {trip.trip_id for trip in self.reader.trips}

        # Group by trip
        trip_stop_times: dict[str, list[StopTime]] = {}
        for st in self.reader.stop_times:
            if st.trip_id not in trip_stop_times:
                trip_stop_times[st.trip_id] = []
            trip_stop_times[st.trip_id].append(st)

        for trip_id in sorted(trip_ids - trip_stop_times.keys()):
            self.warnings.append(f"Trip {trip_id} has no stop times")

        for trip_id, stop_times in trip_stop_times.items():
            if trip_id not in trip_ids:
                self.errors.append(f"Stop times reference non-existent trip {trip_id}")
                continue

            # Check stop_sequence is strictly increasing
            sequences = [st.stop_sequence for st in stop_times]
            if len(set(sequences)) != len(sequences):
                self.errors.append(
                    f"Trip {trip_id} has duplicate stop_sequence values: {sequences}"
                )

            # Check times are monotonically increasing where present
            prev_time = -1
            for st in stop_times:
                if st.stop_id not in stop_ids:
                    self.errors.append(
                        f"Stop time for trip {trip_id} references non-existent stop {st.stop_id}"
                    )

                if st.arrival_time is not None:
                    if st.arrival_time < prev_time:
                        self.warnings.append(
                            f"Trip {trip_id} has non-increasing times at stop {st.stop_id}: "
                            f"{prev_time} -> {st.arrival_time}"
                        )
                    prev_time = st.arrival_time
                if st.departure_time is not None:
                    prev_time = max(prev_time, st.departure_time)

            # First and last stops should be timed
            if stop_times[0].arrival_time is None:
                self.warnings.append(f"Trip {trip_id} missing first arrival time")
            if stop_times[-1].arrival_time is None:
                self.warnings.append(f"Trip {trip_id} missing last arrival time")
