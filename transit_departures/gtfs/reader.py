"""GTFS data reader and normalizer."""

import csv
import io
import logging
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from transit_departures.gtfs.calendar import window_from_row
from transit_departures.gtfs.models import Calendar, Route, Stop, StopTime, Trip

logger = logging.getLogger(__name__)


class GTFSReader:
    """Read and normalize a GTFS feed from a directory or a zip archive."""

    def __init__(self, gtfs_path: str) -> None:
        """Initialize reader with GTFS directory or zip path."""
        self.gtfs_path = Path(gtfs_path)
        self.is_zip = self.gtfs_path.is_file() and zipfile.is_zipfile(self.gtfs_path)
        if not (self.gtfs_path.is_dir() or self.is_zip):
            raise ValueError(f"GTFS path not found or not a directory/zip: {gtfs_path}")

        # Data storage
        self.stops: list[Stop] = []
        self.routes: list[Route] = []
        self.trips: list[Trip] = []
        self.stop_times: list[StopTime] = []
        self.calendar: list[Calendar] = []

    def read_all(self) -> None:
        """Read all GTFS files."""
        logger.info(f"Reading GTFS data from {self.gtfs_path}")
        self.read_stops()
        self.read_routes()
        self.read_calendar()
        self.read_trips()
        self.read_stop_times()
        logger.info(
            f"Loaded {len(self.stops)} stops, {len(self.routes)} routes, "
            f"{len(self.trips)} trips, {len(self.stop_times)} stop_times, "
            f"{len(self.calendar)} calendar entries"
        )

    def has_table(self, name: str) -> bool:
        """Check whether the feed contains a table file."""
        if self.is_zip:
            with zipfile.ZipFile(self.gtfs_path) as archive:
                return self._zip_member(archive, name) is not None
        return (self.gtfs_path / name).exists()

    @contextmanager
    def open_table(self, name: str) -> Iterator[TextIO]:
        """Open a table file for reading, from the directory or the archive."""
        if not self.is_zip:
            with open(self.gtfs_path / name, encoding="utf-8-sig") as f:
                yield f
            return

        with zipfile.ZipFile(self.gtfs_path) as archive:
            member = self._zip_member(archive, name)
            if member is None:
                raise FileNotFoundError(f"{name} not found in {self.gtfs_path}")
            with archive.open(member) as raw:
                yield io.TextIOWrapper(raw, encoding="utf-8-sig")

    @staticmethod
    def _zip_member(archive: zipfile.ZipFile, name: str) -> str | None:
        """Find a table inside an archive, allowing one wrapping folder."""
        for member in archive.namelist():
            if member == name or member.endswith(f"/{name}"):
                return member
        return None

    def _require(self, name: str) -> None:
        if not self.has_table(name):
            raise FileNotFoundError(f"Required file not found: {self.gtfs_path / name}")

    def read_calendar(self) -> None:
        """Read calendar.txt."""
        if not self.has_table("calendar.txt"):
            logger.info("calendar.txt not found, skipping")
            return

        with self.open_table("calendar.txt") as f:
            reader = csv.DictReader(f)
            for row in reader:
                calendar = Calendar(service_id=row["service_id"], window=window_from_row(row))
                self.calendar.append(calendar)

        self.calendar.sort(key=lambda cal: cal.service_id)

    def read_stops(self) -> None:
        """Read stops.txt."""
        self._require("stops.txt")

        with self.open_table("stops.txt") as f:
            reader = csv.DictReader(f)
            for row in reader:
                stop = Stop(
                    stop_id=row["stop_id"],
                    name=row.get("stop_name", ""),
                    lat=self._parse_coordinate(row.get("stop_lat", "")),
                    lon=self._parse_coordinate(row.get("stop_lon", "")),
                )
                self.stops.append(stop)

        # Sort by stop_id for stable ordering
        self.stops.sort(key=lambda stop: stop.stop_id)

    def read_routes(self) -> None:
        """Read routes.txt."""
        self._require("routes.txt")

        with self.open_table("routes.txt") as f:
            reader = csv.DictReader(f)
            for row in reader:
                route = Route(
                    route_id=row["route_id"],
                    route_short_name=row.get("route_short_name", ""),
                    route_long_name=row.get("route_long_name", ""),
                    route_type=int(row.get("route_type") or 3),
                )
                self.routes.append(route)

        self.routes.sort(key=lambda route: route.route_id)

    def read_trips(self) -> None:
        """Read trips.txt."""
        self._require("trips.txt")

        with self.open_table("trips.txt") as f:
            reader = csv.DictReader(f)
            for row in reader:
                trip = Trip(
                    trip_id=row["trip_id"],
                    route_id=row["route_id"],
                    service_id=row["service_id"],
                    direction_id=int(row.get("direction_id") or 0),
                )
                self.trips.append(trip)

        self.trips.sort(key=lambda trip: trip.trip_id)

    def read_stop_times(self) -> None:
        """Read stop_times.txt and normalize times."""
        self._require("stop_times.txt")

        stop_times_raw: list[StopTime] = []
        with self.open_table("stop_times.txt") as f:
            reader = csv.DictReader(f)
            for row in reader:
                stop_time = StopTime(
                    trip_id=row["trip_id"],
                    stop_id=row["stop_id"],
                    arrival_time=self._parse_optional_time(row.get("arrival_time", "")),
                    departure_time=self._parse_optional_time(row.get("departure_time", "")),
                    stop_sequence=int(row["stop_sequence"]),
                )
                stop_times_raw.append(stop_time)

        # Sort by trip_id, then stop_sequence for normalization
        stop_times_raw.sort(key=lambda st: (st.trip_id, st.stop_sequence))
        self.stop_times = stop_times_raw

    @staticmethod
    def _parse_time(time_str: str) -> int:
        """Parse HH:MM:SS to seconds since midnight, supporting >24h."""
        parts = time_str.strip().split(":")
        if len(parts) != 3:
            raise ValueError(f"Invalid time format: {time_str}")

        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2])

        return hours * 3600 + minutes * 60 + seconds

    @classmethod
    def _parse_optional_time(cls, time_str: str | None) -> int | None:
        """Parse a time that may be left blank for untimed stops."""
        if time_str is None or not time_str.strip():
            return None
        return cls._parse_time(time_str)

    @staticmethod
    def _parse_coordinate(value: str | None) -> float:
        if value is None or not value.strip():
            return 0.0
        return float(value)
