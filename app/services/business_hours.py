"""Location business hours -> the open interval for a given date."""

import logging
from datetime import date, time
from typing import Any

from app.core.timezones import get_zone, local_to_utc
from app.models.slot import Interval

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_wall_time(value: Any) -> time:
    """Accept a naive time or an "HH:MM" / "HH:MM:SS" string."""
    if isinstance(value, time):
        parsed = value
    elif isinstance(value, str):
        parsed = time.fromisoformat(value.strip())
    else:
        raise ValueError(f"Cannot convert {type(value).__name__} to time")
    if parsed.tzinfo is not None:
        raise ValueError(f"Wall-clock time must not carry a UTC offset: {value!r}")
    return parsed


def _is_marked_closed(entry: dict[str, Any]) -> bool:
    return bool(entry.get("closed") or entry.get("isClosed") or entry.get("is_closed"))


def day_hours(business_hours: dict[str, Any] | None, d: date) -> tuple[time, time] | None:
    """Wall-clock (open, close) for the weekday of `d`, or None when closed.

    Anything missing or malformed counts as closed.
    """
    if not business_hours:
        return None
    weekday = WEEKDAY_NAMES[d.weekday()]
    entry = business_hours.get(weekday)
    if entry is None:
        return None
    if not isinstance(entry, dict):
        logger.warning("Business hours for %s are not an object: %r", weekday, entry)
        return None
    if _is_marked_closed(entry):
        return None
    try:
        open_time = parse_wall_time(entry.get("open"))
        close_time = parse_wall_time(entry.get("close"))
    except ValueError:
        logger.warning("Unparseable business hours for %s: %r", weekday, entry)
        return None
    if open_time >= close_time:
        logger.warning("Business hours for %s open at or after close: %r", weekday, entry)
        return None
    return open_time, close_time


def resolve_open_interval(
    business_hours: dict[str, Any] | None, timezone: str | None, d: date
) -> Interval | None:
    """The location's [open, close) on date `d` as naive UTC instants, or None if closed."""
    hours = day_hours(business_hours, d)
    if hours is None:
        return None
    zone = get_zone(timezone)
    if zone is None:
        return None
    open_time, close_time = hours
    start = local_to_utc(d, open_time, zone)
    end = local_to_utc(d, close_time, zone)
    if start >= end:
        # both ends collapsed onto the same instant across a DST gap
        return None
    return Interval(start, end)


def validate_business_hours(business_hours: dict[str, Any]) -> dict[str, Any]:
    """Normalize a business hours payload for storage.

    Raises ValueError for unknown weekdays, unparseable times or open >= close.
    Closed days are stored as null.
    """
    normalized: dict[str, Any] = {}
    for key, entry in business_hours.items():
        day = key.strip().lower()
        if day not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday: {key}")
        if entry is None or (isinstance(entry, dict) and _is_marked_closed(entry)):
            normalized[day] = None
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"Hours for {day} must be an object with open and close")
        open_time = parse_wall_time(entry.get("open"))
        close_time = parse_wall_time(entry.get("close"))
        if open_time >= close_time:
            raise ValueError(f"Opening time must be before closing time on {day}")
        normalized[day] = {"open": open_time.strftime("%H:%M"), "close": close_time.strftime("%H:%M")}
    return normalized
