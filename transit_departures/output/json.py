"""JSON schedule store."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from transit_departures.errors import StoreError
from transit_departures.gtfs.calendar import WEEKDAYS
from transit_departures.gtfs.models import CalendarWindow, ScheduleRecord, StopSchedule
from transit_departures.version import SCHEMA_VERSION

logger = logging.getLogger(__name__)

SCHEDULES_FILE = "schedules.json"


def calendar_to_dict(window: CalendarWindow) -> dict[str, Any]:
    data: dict[str, Any] = {day: getattr(window, day) for day in WEEKDAYS}
    data["start_date"] = window.start_date.isoformat()
    data["end_date"] = window.end_date.isoformat()
    return data


def calendar_from_dict(data: dict[str, Any]) -> CalendarWindow:
    return CalendarWindow(
        **{day: bool(data[day]) for day in WEEKDAYS},
        start_date=date.fromisoformat(data["start_date"]),
        end_date=date.fromisoformat(data["end_date"]),
    )


def schedule_to_dict(schedule: StopSchedule) -> dict[str, Any]:
    """Serialize a stop schedule to plain JSON types."""
    records_data = []
    for record in schedule.records:
        records_data.append(
            {
                "route_label": record.route_label,
                "trip_service_ref": record.trip_service_ref,
                "trip_id": record.trip_id,
                "calendar": calendar_to_dict(record.calendar),
                "scheduled_offset": record.scheduled_offset,
                "stop_display_name": record.stop_display_name,
            }
        )

    return {
        "stop_id": schedule.stop_id,
        "name": schedule.name,
        "terminus": schedule.terminus,
        "records": records_data,
    }


def schedule_from_dict(data: dict[str, Any]) -> StopSchedule:
    """Rebuild a stop schedule from its JSON form."""
    records = tuple(
        ScheduleRecord(
            route_label=item["route_label"],
            trip_service_ref=item["trip_service_ref"],
            trip_id=item["trip_id"],
            calendar=calendar_from_dict(item["calendar"]),
            scheduled_offset=item["scheduled_offset"],
            stop_display_name=item["stop_display_name"],
        )
        for item in data["records"]
    )
    return StopSchedule(
        stop_id=data["stop_id"],
        name=data["name"],
        terminus=data["terminus"],
        records=records,
    )


def write_schedules(output_path: Path, schedules: list[StopSchedule]) -> dict[str, str]:
    """Write all stop schedules to schedules.json."""
    logger.info(f"Writing {len(schedules)} stop schedules to {output_path}")

    output_path.mkdir(parents=True, exist_ok=True)

    data = {
        "schema_version": SCHEMA_VERSION,
        "stops": [schedule_to_dict(schedule) for schedule in schedules],
    }

    schedules_path = output_path / SCHEDULES_FILE
    with open(schedules_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
    logger.info(f"Wrote {schedules_path}")

    return {SCHEDULES_FILE: str(schedules_path)}


def read_schedules(output_path: Path) -> list[StopSchedule]:
    """Read all stop schedules from schedules.json."""
    schedules_path = output_path / SCHEDULES_FILE
    if not schedules_path.exists():
        raise StoreError(f"Schedule store not found: {schedules_path}")

    try:
        with open(schedules_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise StoreError(f"Schedule store is not valid JSON: {schedules_path}: {e}") from e

    schema_version = data.get("schema_version")
    if schema_version != SCHEMA_VERSION:
        raise StoreError(
            f"Unsupported schedule store schema {schema_version}, expected {SCHEMA_VERSION}"
        )

    schedules = [schedule_from_dict(item) for item in data["stops"]]
    logger.debug(f"Read {len(schedules)} stop schedules from {schedules_path}")
    return schedules
