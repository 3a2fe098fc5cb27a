"""Wall-clock <-> absolute instant conversion.

Appointments are stored as naive UTC. Business hours and staff availability are
wall-clock times in the location's timezone. Every conversion between the two
goes through this module.
"""

import logging
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def get_zone(name: str | None) -> ZoneInfo | None:
    """Return the ZoneInfo for an IANA name, or None if it is blank or unknown."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r", name)
        return None


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns.

    Naive input is assumed to already be UTC.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def local_to_utc(d: date, wall_time: time, zone: ZoneInfo) -> datetime:
    """Naive UTC instant for a wall-clock time on a date in `zone`.

    Times inside a spring-forward gap resolve with fold=0, i.e. as if the
    pre-transition offset still applied (02:30 becomes 03:30 local). Times in
    the repeated fall-back hour resolve to their first occurrence.
    """
    local = datetime.combine(d, wall_time).replace(tzinfo=zone)
    return local.astimezone(UTC).replace(tzinfo=None)


def utc_to_local(dt: datetime, zone: ZoneInfo) -> datetime:
    """Aware local datetime for a naive (or aware) UTC instant."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(zone)


def local_day_bounds(d: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """[start, end) of the local calendar day as naive UTC instants.

    On DST transition days the span is 23 or 25 hours.
    """
    start = local_to_utc(d, time.min, zone)
    end = local_to_utc(d + timedelta(days=1), time.min, zone)
    return start, end


def sunday_based_weekday(d: date) -> int:
    """0 = Sunday ... 6 = Saturday, the numbering staff availability uses."""
    return (d.weekday() + 1) % 7
