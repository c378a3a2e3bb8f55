"""Pytest configuration and fixtures."""

import shutil
from datetime import date
from pathlib import Path

import pytest

from transit_departures.gtfs.feed import FeedSnapshot
from transit_departures.gtfs.models import CalendarWindow
from transit_departures.gtfs.reader import GTFSReader


@pytest.fixture
def gtfs_minimal() -> Path:
    """Path to minimal GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_minimal"


@pytest.fixture
def gtfs_branching() -> Path:
    """Path to branching GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_branching"


@pytest.fixture
def gtfs_edgecases() -> Path:
    """Path to edge cases GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_edgecases"


@pytest.fixture
def feed_minimal(gtfs_minimal: Path) -> FeedSnapshot:
    """Indexed snapshot of the minimal fixture."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()
    return FeedSnapshot.from_reader(reader)


@pytest.fixture
def feed_branching(gtfs_branching: Path) -> FeedSnapshot:
    """Indexed snapshot of the branching fixture."""
    reader = GTFSReader(str(gtfs_branching))
    reader.read_all()
    return FeedSnapshot.from_reader(reader)


@pytest.fixture
def every_day_2024() -> CalendarWindow:
    """Calendar running every day of 2024."""
    return CalendarWindow(
        monday=True,
        tuesday=True,
        wednesday=True,
        thursday=True,
        friday=True,
        saturday=True,
        sunday=True,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
    )


@pytest.fixture
def tmp_output(tmp_path: Path) -> Path:
    """Temporary output directory."""
    output_dir = tmp_path / "departures_data"
    output_dir.mkdir()
    yield output_dir
    # Cleanup
    if output_dir.exists():
        shutil.rmtree(output_dir)
