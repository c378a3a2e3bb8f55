"""Tests for GTFS reader."""

import zipfile
from datetime import date
from pathlib import Path

import pytest

from transit_departures.gtfs.reader import GTFSReader


def test_reader_basic(gtfs_minimal: Path) -> None:
    """Test basic GTFS reading."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()

    assert len(reader.stops) == 3
    assert len(reader.routes) == 1
    assert len(reader.trips) == 2
    assert len(reader.stop_times) == 6
    assert len(reader.calendar) == 2


def test_reader_sorted_ids(gtfs_minimal: Path) -> None:
    """Test tables are sorted by id for stable ordering."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()

    assert [stop.stop_id for stop in reader.stops] == ["A", "B", "C"]
    assert [trip.trip_id for trip in reader.trips] == ["T1", "T2"]
    assert [cal.service_id for cal in reader.calendar] == ["DAILY", "WEEKDAY"]


def test_reader_calendar_window(gtfs_minimal: Path) -> None:
    """Test calendar rows become date windows with weekday flags."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()

    weekday = next(cal for cal in reader.calendar if cal.service_id == "WEEKDAY")
    assert weekday.window.start_date == date(2024, 1, 1)
    assert weekday.window.end_date == date(2024, 12, 31)
    assert weekday.window.monday
    assert not weekday.window.saturday
    assert not weekday.window.sunday


def test_reader_untimed_stop_time(gtfs_minimal: Path) -> None:
    """Test blank times are read as None."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()

    untimed = [st for st in reader.stop_times if st.trip_id == "T2" and st.stop_id == "B"]
    assert len(untimed) == 1
    assert untimed[0].arrival_time is None
    assert untimed[0].departure_time is None


def test_parse_time_normal() -> None:
    """Test time parsing for normal times."""
    assert GTFSReader._parse_time("08:30:45") == 8 * 3600 + 30 * 60 + 45
    assert GTFSReader._parse_time("00:00:00") == 0
    assert GTFSReader._parse_time("23:59:59") == 23 * 3600 + 59 * 60 + 59


def test_parse_time_over_24h() -> None:
    """Test time parsing for times over 24 hours."""
    assert GTFSReader._parse_time("25:30:00") == 25 * 3600 + 30 * 60
    assert GTFSReader._parse_time("48:00:00") == 48 * 3600


def test_parse_time_invalid() -> None:
    """Test malformed times are rejected."""
    with pytest.raises(ValueError):
        GTFSReader._parse_time("8:30")


def test_parse_optional_time_blank() -> None:
    """Test blank optional times."""
    assert GTFSReader._parse_optional_time("") is None
    assert GTFSReader._parse_optional_time("  ") is None
    assert GTFSReader._parse_optional_time(None) is None
    assert GTFSReader._parse_optional_time("01:00:00") == 3600


def test_reader_missing_file() -> None:
    """Test reader with missing input path."""
    with pytest.raises(ValueError):
        GTFSReader("/nonexistent/path")


def test_reader_missing_required_table(tmp_path: Path) -> None:
    """Test reader with a directory lacking required tables."""
    reader = GTFSReader(str(tmp_path))
    with pytest.raises(FileNotFoundError):
        reader.read_all()


def test_reader_without_calendar(gtfs_minimal: Path, tmp_path: Path) -> None:
    """Test calendar.txt is optional."""
    for name in ("stops.txt", "routes.txt", "trips.txt", "stop_times.txt"):
        (tmp_path / name).write_text((gtfs_minimal / name).read_text())

    reader = GTFSReader(str(tmp_path))
    reader.read_all()

    assert reader.calendar == []
    assert len(reader.trips) == 2


def test_reader_zip_archive(gtfs_minimal: Path, tmp_path: Path) -> None:
    """Test reading a zipped feed, including a wrapping folder."""
    archive_path = tmp_path / "feed.zip"
    with zipfile.ZipFile(archive_path, "w") as archive:
        for file in gtfs_minimal.iterdir():
            archive.write(file, arcname=f"feed/{file.name}")

    reader = GTFSReader(str(archive_path))
    reader.read_all()

    assert len(reader.stops) == 3
    assert len(reader.stop_times) == 6
    assert len(reader.calendar) == 2


def test_reader_stop_times_ordered(gtfs_minimal: Path) -> None:
    """Test stop times are ordered by trip and sequence."""
    reader = GTFSReader(str(gtfs_minimal))
    reader.read_all()

    # Group by trip
    by_trip: dict[str, list[int]] = {}
    for st in reader.stop_times:
        if st.trip_id not in by_trip:
            by_trip[st.trip_id] = []
        by_trip[st.trip_id].append(st.stop_sequence)

    # Each trip should have ordered sequences
    for trip_id, sequences in by_trip.items():
        assert sequences == sorted(sequences), f"Trip {trip_id} has unordered sequences"
