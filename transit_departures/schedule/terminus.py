"""Terminating stop resolution."""

import logging

from transit_departures.gtfs.feed import FeedSnapshot
from transit_departures.gtfs.models import Stop

logger = logging.getLogger(__name__)

TERMINUS_RULES = ("first", "last")


def find_terminus_candidates(feed: FeedSnapshot, stop: Stop) -> list[Stop]:
    """Last stops of every trip serving a stop, in trip_id order."""
    candidates: list[Stop] = []
    for trip in feed.trips:
        stop_times = feed.stop_times(trip.trip_id)
        if not stop_times:
            continue
        if any(st.stop_id == stop.stop_id for st in stop_times):
            candidates.append(feed.stop(stop_times[-1].stop_id))
    return candidates


def resolve_terminus(feed: FeedSnapshot, stop: Stop, rule: str = "first") -> Stop:
    """
    Find the destination shown for a stop.

    Trips are scanned in trip_id order and each trip serving the stop
    proposes its last stop. With rule "first" the first proposal wins,
    with rule "last" the last one does. A stop no trip serves is its own
    terminus.
    """
    if rule not in TERMINUS_RULES:
        raise ValueError(f"Unknown terminus rule {rule!r}, expected one of {TERMINUS_RULES}")

    candidates = find_terminus_candidates(feed, stop)
    if not candidates:
        logger.debug(f"Stop {stop.stop_id} is served by no trip, using itself as terminus")
        return stop

    distinct = {candidate.stop_id for candidate in candidates}
    if len(distinct) > 1:
        logger.debug(
            f"Stop {stop.stop_id} has {len(distinct)} possible termini, "
            f"picking the {rule} by trip id"
        )

    return candidates[0] if rule == "first" else candidates[-1]
