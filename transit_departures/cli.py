"""Command-line interface for transit-departures."""

import argparse
import logging
import sys

from transit_departures.api import (
    add_stops,
    build,
    departures,
    refresh,
    remove_stops,
    resolve_query_time,
    stored_config,
    validate,
    wipe,
)
from transit_departures.gtfs.models import BuildConfig, Manifest, QueryConfig
from transit_departures.output.text import render_board
from transit_departures.schedule.terminus import TERMINUS_RULES
from transit_departures.version import VERSION

DEPARTURES_COUNT = 3
DEFAULT_STORE = "./departures_data"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _print_manifest(action: str, output: str, manifest: Manifest) -> None:
    print(f"\n{action} successful!")
    print(f"Store: {output}")
    print(f"Stats: {manifest.stats}")


def _build_config(args: argparse.Namespace) -> BuildConfig:
    return BuildConfig(
        input_path=args.input,
        output_path=args.output,
        stop_ids=tuple(args.stop),
        jobs=args.jobs,
        terminus_rule=args.terminus_rule,
        strict=args.strict,
    )


def _stored_config(args: argparse.Namespace) -> BuildConfig:
    return stored_config(
        args.output, jobs=args.jobs, terminus_rule=args.terminus_rule, strict=args.strict
    )


def cmd_build(args: argparse.Namespace) -> int:
    """Execute build command."""
    setup_logging(args.verbose)

    config = _build_config(args)

    try:
        manifest = build(args.input, args.output, args.stop, config)
        _print_manifest("Build", args.output, manifest)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Build failed")
        return 1


def cmd_refresh(args: argparse.Namespace) -> int:
    """Execute refresh command."""
    setup_logging(args.verbose)

    try:
        manifest = refresh(args.output, _stored_config(args))
        _print_manifest("Refresh", args.output, manifest)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Refresh failed")
        return 1


def cmd_add_stop(args: argparse.Namespace) -> int:
    """Execute add-stop command."""
    setup_logging(args.verbose)

    try:
        manifest = add_stops(args.output, args.stop, _stored_config(args))
        _print_manifest("Add stop", args.output, manifest)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Adding stops failed")
        return 1


def cmd_remove_stop(args: argparse.Namespace) -> int:
    """Execute remove-stop command."""
    setup_logging(args.verbose)

    try:
        manifest = remove_stops(args.output, args.stop, _stored_config(args))
        _print_manifest("Remove stop", args.output, manifest)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Removing stops failed")
        return 1


def cmd_departures(args: argparse.Namespace) -> int:
    """Execute departures command."""
    setup_logging(args.verbose)

    config = QueryConfig(limit=args.limit, at=args.at)

    try:
        now = resolve_query_time(config)
        boards = departures(args.output, config, now=now)
        print(render_board(boards, now))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Departure query failed")
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Execute validate command."""
    setup_logging(args.verbose)

    try:
        report = validate(args.output)
        if report.valid:
            print("\nValidation successful!")
            print(f"Stats: {report.stats}")
            if report.warnings:
                print(f"Warnings ({len(report.warnings)}):")
                for warning in report.warnings:
                    print(f"  - {warning}")
            return 0
        else:
            print(f"\nValidation failed with {len(report.errors)} errors:")
            for error in report.errors:
                print(f"  - {error}")
            return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Validation failed")
        return 1


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def cmd_wipe(args: argparse.Namespace) -> int:
    """Execute wipe command."""
    setup_logging(args.verbose)

    if not args.yes and not _confirm(f"Wipe the schedule store at {args.output}?"):
        print("Wipe cancelled", file=sys.stderr)
        return 1

    try:
        removed = wipe(args.output)
        print("\nWipe successful!")
        print(f"Removed: {', '.join(removed)}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Wipe failed")
        return 1


def _add_output_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        default=DEFAULT_STORE,
        help=f"Schedule store directory (default: {DEFAULT_STORE})",
    )


def _add_build_options(parser: argparse.ArgumentParser, stored: bool = False) -> None:
    """Build flags. With stored=True, omitted flags keep the store's recorded values."""
    recorded = "(default: as recorded in the store)"
    parser.add_argument(
        "--jobs",
        type=int,
        default=None if stored else 0,
        help="Number of parallel workers per stop build "
        f"{recorded if stored else '(default: 0, automatic)'}",
    )
    parser.add_argument(
        "--terminus-rule",
        choices=list(TERMINUS_RULES),
        default=None if stored else "first",
        help="Which serving trip, by trip id, decides a stop's terminus "
        f"{recorded if stored else '(default: first)'}",
    )
    parser.add_argument(
        "--strict",
        type=lambda x: x.lower() == "true",
        default=None if stored else False,
        help="Fail when a trip has no calendar instead of skipping it "
        f"{recorded if stored else '(default: false)'}",
    )


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="transit-departures",
        description="Index GTFS stop schedules and show upcoming departures",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Build command
    build_parser = subparsers.add_parser("build", help="Build stop schedules from a GTFS feed")
    build_parser.add_argument("--input", required=True, help="Path to GTFS directory or zip")
    _add_output_option(build_parser)
    build_parser.add_argument(
        "--stop", action="append", required=True, help="GTFS stop id to index (repeatable)"
    )
    _add_build_options(build_parser)
    build_parser.set_defaults(func=cmd_build)

    # Refresh command
    refresh_parser = subparsers.add_parser("refresh", help="Rebuild all schedules from the feed")
    _add_output_option(refresh_parser)
    _add_build_options(refresh_parser, stored=True)
    refresh_parser.set_defaults(func=cmd_refresh)

    # Add/remove stop commands
    add_parser = subparsers.add_parser("add-stop", help="Add stops and rebuild schedules")
    remove_parser = subparsers.add_parser("remove-stop", help="Remove stops and rebuild schedules")
    for sub, func in ((add_parser, cmd_add_stop), (remove_parser, cmd_remove_stop)):
        _add_output_option(sub)
        sub.add_argument("--stop", action="append", required=True, help="GTFS stop id (repeatable)")
        _add_build_options(sub, stored=True)
        sub.set_defaults(func=func)

    # Departures command
    departures_parser = subparsers.add_parser("departures", help="Show upcoming departures")
    _add_output_option(departures_parser)
    departures_parser.add_argument(
        "-l",
        "--limit",
        type=int,
        default=DEPARTURES_COUNT,
        help=f"Departures shown per stop (default: {DEPARTURES_COUNT})",
    )
    departures_parser.add_argument(
        "--at", default=None, help="Query time as ISO timestamp (default: now)"
    )
    departures_parser.set_defaults(func=cmd_departures)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a schedule store")
    _add_output_option(validate_parser)
    validate_parser.set_defaults(func=cmd_validate)

    # Wipe command
    wipe_parser = subparsers.add_parser("wipe", help="Delete the whole schedule store")
    _add_output_option(wipe_parser)
    wipe_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    wipe_parser.set_defaults(func=cmd_wipe)

    # Parse and execute
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
