"""Plain text departure board."""

from datetime import datetime

from transit_departures.gtfs.models import ScheduleRecord, StopDepartures
from transit_departures.schedule.departures import SECONDS_PER_DAY, minutes_until


def format_clock(offset: int) -> str:
    """HH:MM for a service-day offset, wrapping past midnight."""
    seconds = offset % SECONDS_PER_DAY
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}"


def format_departure(record: ScheduleRecord, now: datetime) -> str:
    """Line like: 903 - 23:15 (+4 min)."""
    minutes = minutes_until(record, now)
    clock = format_clock(record.scheduled_offset)
    return f"{record.route_label} - {clock} (+{minutes} min)"


def render_board(boards: list[StopDepartures], now: datetime) -> str:
    """
    Render departures of every stop, sorted by stop name:

        Novovysocanska -> Sidliste Cakovice
        -----------------------------------
        903 - 23:15 (+4 min)
        913 - 23:58 (+47 min)
    """
    blocks: list[str] = []
    for board in sorted(boards, key=lambda b: (b.schedule.name, b.schedule.stop_id)):
        heading = f"{board.schedule.name} -> {board.schedule.terminus}"
        lines = [heading, "-" * len(heading)]
        lines.extend(format_departure(record, now) for record in board.departures)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
