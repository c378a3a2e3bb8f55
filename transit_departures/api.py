"""Public API for transit-departures."""

import hashlib
import json
import logging
import platform
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from transit_departures.errors import MissingCalendarError, StoreError, TransitDeparturesError
from transit_departures.gtfs.calendar import summarize_patterns
from transit_departures.gtfs.feed import FeedSnapshot
from transit_departures.gtfs.models import (
    BuildConfig,
    Manifest,
    QueryConfig,
    SkippedRecord,
    StopDepartures,
    StopSchedule,
    ValidationReport,
)
from transit_departures.gtfs.reader import GTFSReader
from transit_departures.gtfs.validator import GTFSValidator
from transit_departures.output.json import SCHEDULES_FILE, read_schedules, write_schedules
from transit_departures.schedule.builder import build_schedule
from transit_departures.schedule.departures import query_departures
from transit_departures.schedule.terminus import resolve_terminus
from transit_departures.version import SCHEMA_VERSION, VERSION

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


def load_feed(input_path: str) -> FeedSnapshot:
    """Read, validate and index a GTFS feed."""
    reader = GTFSReader(input_path)
    reader.read_all()

    validator = GTFSValidator(reader)
    validation_report = validator.validate()
    if not validation_report.valid:
        for error in validation_report.errors[:10]:
            logger.error(error)
        raise ValueError(f"GTFS validation failed with {len(validation_report.errors)} errors")

    return FeedSnapshot.from_reader(reader)


def _check_config(
    config: BuildConfig, input_path: str, output_path: str, stop_ids: list[str]
) -> None:
    """Reject a config that disagrees with the explicit build arguments."""
    if Path(config.input_path) != Path(input_path):
        raise ValueError(f"Config input {config.input_path} does not match {input_path}")
    if Path(config.output_path) != Path(output_path):
        raise ValueError(f"Config output {config.output_path} does not match {output_path}")
    if config.stop_ids and list(dict.fromkeys(config.stop_ids)) != stop_ids:
        raise ValueError(f"Config stops {list(config.stop_ids)} do not match {stop_ids}")


def build(
    input_path: str,
    output_path: str,
    stop_ids: Iterable[str],
    config: BuildConfig | None = None,
) -> Manifest:
    """
    Build schedules for the given stops and write the schedule store.

    Every schedule is rebuilt from scratch from the feed.

    Args:
        input_path: Path to GTFS directory or zip
        output_path: Path to the store directory
        stop_ids: GTFS ids of the stops to index
        config: Optional build configuration

    Returns:
        Manifest with build metadata
    """
    stop_ids = list(dict.fromkeys(stop_ids))
    if config is None:
        config = BuildConfig(
            input_path=input_path, output_path=output_path, stop_ids=tuple(stop_ids)
        )
    else:
        _check_config(config, input_path, output_path, stop_ids)

    logger.info(f"Starting build: {input_path} -> {output_path} for {len(stop_ids)} stops")
    start_time = datetime.now(UTC)

    feed = load_feed(input_path)

    schedules: list[StopSchedule] = []
    skipped: list[SkippedRecord] = []
    for stop_id in stop_ids:
        stop = feed.stop(stop_id)
        terminus = resolve_terminus(feed, stop, rule=config.terminus_rule)
        result = build_schedule(feed, stop, jobs=config.jobs, terminus=terminus.name)
        patterns = summarize_patterns(result.schedule.records)
        logger.info(f"  - {stop.name} -> {terminus.name}: {patterns}")
        schedules.append(result.schedule)
        skipped.extend(result.skipped)

    if skipped:
        logger.warning(f"Skipped {len(skipped)} stop times with no calendar")
        if config.strict:
            raise MissingCalendarError(skipped[0].service_id)

    output_dir = Path(output_path)
    files_written = write_schedules(output_dir, schedules)

    # Compute checksums
    checksums = {}
    for filename, filepath in files_written.items():
        with open(filepath, "rb") as f:
            checksums[filename] = hashlib.sha256(f.read()).hexdigest()

    stats = {
        "stops": len(schedules),
        "records": sum(len(schedule.records) for schedule in schedules),
        "skipped": len(skipped),
    }

    manifest = Manifest(
        schema_version=SCHEMA_VERSION,
        tool_version=VERSION,
        created_at_iso=start_time.isoformat(),
        inputs={
            "gtfs_path": input_path,
            "stop_ids": stop_ids,
            "terminus_rule": config.terminus_rule,
            "jobs": config.jobs,
            "strict": config.strict,
        },
        outputs=checksums,
        stats=stats,
        build={
            "python": platform.python_version(),
            "platform": platform.platform(),
        },
    )
    write_manifest(output_dir, manifest)

    elapsed = (datetime.now(UTC) - start_time).total_seconds()
    logger.info(f"Build completed in {elapsed:.2f}s")

    return manifest


def write_manifest(output_dir: Path, manifest: Manifest) -> None:
    manifest_path = output_dir / MANIFEST_FILE
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(
            {
                "schema_version": manifest.schema_version,
                "tool_version": manifest.tool_version,
                "created_at": manifest.created_at_iso,
                "inputs": manifest.inputs,
                "outputs": manifest.outputs,
                "stats": manifest.stats,
                "build": manifest.build,
            },
            f,
            indent=2,
            sort_keys=True,
        )

    logger.info(f"Wrote manifest to {manifest_path}")


def read_manifest(output_path: str) -> Manifest:
    """Load the manifest of an existing store."""
    manifest_path = Path(output_path) / MANIFEST_FILE
    if not manifest_path.exists():
        raise StoreError(f"No schedule store at {output_path}, run build first")

    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
        return Manifest(
            schema_version=data["schema_version"],
            tool_version=data["tool_version"],
            created_at_iso=data["created_at"],
            inputs=data["inputs"],
            outputs=data["outputs"],
            stats=data["stats"],
            build=data.get("build", {}),
        )
    except (json.JSONDecodeError, KeyError) as e:
        raise StoreError(f"Unreadable manifest {manifest_path}: {e}") from e


def stored_config(
    output_path: str,
    jobs: int | None = None,
    terminus_rule: str | None = None,
    strict: bool | None = None,
) -> BuildConfig:
    """
    Build configuration recorded in a store's manifest.

    Any setting given here overrides the recorded one.
    """
    inputs = read_manifest(output_path).inputs
    return BuildConfig(
        input_path=inputs["gtfs_path"],
        output_path=output_path,
        stop_ids=tuple(inputs["stop_ids"]),
        jobs=inputs.get("jobs", 0) if jobs is None else jobs,
        terminus_rule=(
            inputs.get("terminus_rule", "first") if terminus_rule is None else terminus_rule
        ),
        strict=inputs.get("strict", False) if strict is None else strict,
    )


def _rebuild(output_path: str, stop_ids: list[str], config: BuildConfig | None) -> Manifest:
    if config is None:
        config = stored_config(output_path)
    config = replace(config, output_path=output_path, stop_ids=tuple(stop_ids))
    return build(config.input_path, output_path, stop_ids, config)


def refresh(output_path: str, config: BuildConfig | None = None) -> Manifest:
    """Rebuild every stored schedule from the feed recorded in the manifest."""
    manifest = read_manifest(output_path)
    logger.info(f"Refreshing schedules from {manifest.inputs['gtfs_path']}")
    return _rebuild(output_path, list(manifest.inputs["stop_ids"]), config)


def add_stops(
    output_path: str, stop_ids: Iterable[str], config: BuildConfig | None = None
) -> Manifest:
    """Add stops to the store and rebuild all schedules."""
    current = list(read_manifest(output_path).inputs["stop_ids"])
    added = [stop_id for stop_id in dict.fromkeys(stop_ids) if stop_id not in current]
    if not added:
        logger.info("All requested stops are already in the store")
    else:
        logger.info(f"Adding stops: {', '.join(added)}")
    return _rebuild(output_path, current + added, config)


def remove_stops(
    output_path: str, stop_ids: Iterable[str], config: BuildConfig | None = None
) -> Manifest:
    """Remove stops from the store and rebuild the remaining schedules."""
    current = list(read_manifest(output_path).inputs["stop_ids"])
    to_remove = set(stop_ids)
    for stop_id in sorted(to_remove - set(current)):
        logger.warning(f"Stop {stop_id} is not in the store, nothing to remove")
    remaining = [stop_id for stop_id in current if stop_id not in to_remove]
    return _rebuild(output_path, remaining, config)


def wipe(output_path: str) -> list[str]:
    """
    Delete the schedule store. Cannot be undone.

    Args:
        output_path: Path to the store directory

    Returns:
        Names of the removed files
    """
    output_dir = Path(output_path)
    present = [
        filename
        for filename in (SCHEDULES_FILE, MANIFEST_FILE)
        if (output_dir / filename).exists()
    ]
    if not present:
        raise StoreError(f"No schedule store at {output_path}, nothing to wipe")

    for filename in present:
        (output_dir / filename).unlink()
        logger.info(f"Removed {output_dir / filename}")

    logger.warning(f"Wiped schedule store at {output_path}")
    return present


def resolve_query_time(config: QueryConfig) -> datetime:
    """Query instant from the configuration, local current time by default."""
    if config.at is None:
        return datetime.now()
    return datetime.fromisoformat(config.at)


def departures(
    output_path: str,
    config: QueryConfig | None = None,
    now: datetime | None = None,
) -> list[StopDepartures]:
    """
    Next departures for every stored stop.

    Args:
        output_path: Path to the store directory
        config: Optional query configuration
        now: Query instant, overrides config.at

    Returns:
        One StopDepartures per stored stop, in store order
    """
    if config is None:
        config = QueryConfig()
    if now is None:
        now = resolve_query_time(config)

    schedules = read_schedules(Path(output_path))
    return [
        StopDepartures(
            schedule=schedule,
            departures=tuple(query_departures(schedule, now, limit=config.limit)),
        )
        for schedule in schedules
    ]


def validate(output_path: str) -> ValidationReport:
    """
    Validate a schedule store.

    Args:
        output_path: Path to the store directory

    Returns:
        ValidationReport with results
    """
    logger.info(f"Validating store: {output_path}")

    output_dir = Path(output_path)
    errors: list[str] = []
    warnings: list[str] = []
    stats: dict[str, int] = {}

    # Check required files exist
    for filename in (SCHEDULES_FILE, MANIFEST_FILE):
        if not (output_dir / filename).exists():
            errors.append(f"Required file missing: {filename}")

    if errors:
        return ValidationReport(valid=False, errors=errors, warnings=warnings)

    # Schedules load and every record belongs to its stop
    try:
        schedules = read_schedules(output_dir)
    except (TransitDeparturesError, ValueError, KeyError, TypeError) as e:
        errors.append(f"Schedule validation failed: {e}")
        return ValidationReport(valid=False, errors=errors, warnings=warnings)

    stats = {
        "stops": len(schedules),
        "records": sum(len(schedule.records) for schedule in schedules),
    }
    for schedule in schedules:
        if not schedule.records:
            warnings.append(f"Stop {schedule.stop_id} ({schedule.name}) has no scheduled records")

    # Validate manifest
    try:
        manifest = read_manifest(output_path)

        if manifest.stats.get("stops") != stats["stops"]:
            warnings.append(
                f"Manifest lists {manifest.stats.get('stops')} stops, store has {stats['stops']}"
            )

        # Verify checksums
        for filename, expected_hash in manifest.outputs.items():
            filepath = output_dir / filename
            if filepath.exists():
                with open(filepath, "rb") as f:
                    actual_hash = hashlib.sha256(f.read()).hexdigest()
                if actual_hash != expected_hash:
                    errors.append(
                        f"Checksum mismatch for {filename}: "
                        f"expected {expected_hash}, got {actual_hash}"
                    )
            else:
                errors.append(f"Manifest references missing file: {filename}")

    except StoreError as e:
        errors.append(f"Manifest validation failed: {e}")

    valid = len(errors) == 0

    if valid:
        logger.info("Validation passed")
    else:
        logger.error(f"Validation failed with {len(errors)} errors")

    return ValidationReport(
        valid=valid,
        errors=errors,
        warnings=warnings,
        stats=stats,
    )
