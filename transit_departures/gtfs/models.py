"""Data models for GTFS and internal representations."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True)
class Stop:
    """GTFS stop with coordinates."""

    stop_id: str
    name: str
    lat: float = 0.0
    lon: float = 0.0


@dataclass(frozen=True)
class Route:
    """GTFS route."""

    route_id: str
    route_short_name: str
    route_long_name: str = ""
    route_type: int = 3

    @property
    def label(self) -> str:
        """Human readable line name: short name, then long name, then id."""
        return self.route_short_name or self.route_long_name or self.route_id


@dataclass(frozen=True)
class Trip:
    """GTFS trip."""

    trip_id: str
    route_id: str
    service_id: str
    direction_id: int = 0


@dataclass(frozen=True)
class StopTime:
    """GTFS stop time."""

    trip_id: str
    stop_id: str
    arrival_time: int | None  # seconds since midnight, None when untimed
    departure_time: int | None
    stop_sequence: int


@dataclass(frozen=True)
class CalendarWindow:
    """Weekdays and inclusive date range on which a service runs."""

    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    sunday: bool
    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"Calendar start date {self.start_date} is after end date {self.end_date}"
            )

    @property
    def flags(self) -> tuple[bool, ...]:
        """Weekday flags, Monday first."""
        return (
            self.monday,
            self.tuesday,
            self.wednesday,
            self.thursday,
            self.friday,
            self.saturday,
            self.sunday,
        )

    def runs_on(self, weekday: int) -> bool:
        """Check the flag for a weekday number (Monday is 0)."""
        return self.flags[weekday]

    def covers(self, day: date) -> bool:
        """Check that a date lies within the inclusive range."""
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class Calendar:
    """GTFS calendar.txt entry."""

    service_id: str
    window: CalendarWindow


@dataclass(frozen=True)
class ScheduleRecord:
    """One scheduled visit of a trip at a stop."""

    route_label: str
    trip_service_ref: str
    trip_id: str
    calendar: CalendarWindow
    scheduled_offset: int | None  # seconds since service-day midnight, may exceed 86400
    stop_display_name: str


@dataclass(frozen=True)
class StopSchedule:
    """All scheduled records for one stop, unordered."""

    stop_id: str
    name: str
    terminus: str
    records: tuple[ScheduleRecord, ...] = ()

    def __post_init__(self) -> None:
        for record in self.records:
            if record.stop_display_name != self.name:
                raise ValueError(
                    f"Record for trip {record.trip_id} names stop "
                    f"{record.stop_display_name!r}, expected {self.name!r}"
                )


@dataclass(frozen=True)
class SkippedRecord:
    """Stop time left out of a schedule, with the reason."""

    route_id: str
    trip_id: str
    service_id: str
    reason: str


@dataclass(frozen=True)
class ScheduleBuild:
    """Outcome of building one stop's schedule."""

    schedule: StopSchedule
    skipped: tuple[SkippedRecord, ...] = ()

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


@dataclass(frozen=True)
class StopDepartures:
    """Stop schedule paired with the departures selected for display."""

    schedule: StopSchedule
    departures: tuple[ScheduleRecord, ...]


@dataclass
class Manifest:
    """Build manifest with metadata and checksums."""

    schema_version: int
    tool_version: str
    created_at_iso: str
    inputs: dict[str, Any]
    outputs: dict[str, str]  # filename -> sha256
    stats: dict[str, int]
    build: dict[str, str]


@dataclass
class ValidationReport:
    """Report from validation process."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BuildConfig:
    """Configuration for building the schedule store."""

    input_path: str
    output_path: str
    stop_ids: tuple[str, ...] = ()
    jobs: int = 0  # 0 lets the executor pick the worker count
    terminus_rule: str = "first"  # first, last
    strict: bool = False


@dataclass(frozen=True)
class QueryConfig:
    """Configuration for departure queries."""

    limit: int = 3
    at: str | None = None  # ISO timestamp, local current time when unset
