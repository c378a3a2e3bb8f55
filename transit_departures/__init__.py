"""Transit Departures - Per-stop GTFS schedules and upcoming departure queries."""

from transit_departures.api import (
    add_stops,
    build,
    departures,
    refresh,
    remove_stops,
    validate,
    wipe,
)
from transit_departures.version import SCHEMA_VERSION, VERSION

__version__ = VERSION
__all__ = [
    "SCHEMA_VERSION",
    "VERSION",
    "add_stops",
    "build",
    "departures",
    "refresh",
    "remove_stops",
    "validate",
    "wipe",
]
