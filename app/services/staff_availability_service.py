import logging
from collections.abc import Iterable
from datetime import date, time

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AvailabilityOverlap, NotFoundError
from app.core.timezones import get_zone, local_to_utc, sunday_based_weekday
from app.models.slot import Interval
from app.models.staff import StaffAvailability
from app.services.catalog_service import get_staff

logger = logging.getLogger(__name__)


def resolve_working_intervals(
    windows: Iterable[StaffAvailability],
    open_interval: Interval | None,
    timezone: str | None,
    d: date,
) -> list[Interval]:
    """Staff windows for the weekday of `d`, clipped to the location's open interval.

    Adjacent windows are kept separate so a staff member's breaks survive.
    """
    if open_interval is None:
        return []
    zone = get_zone(timezone)
    if zone is None:
        return []
    weekday = sunday_based_weekday(d)
    out: list[Interval] = []
    for w in windows:
        if w.day_of_week != weekday:
            continue
        if w.start_time >= w.end_time:
            logger.warning("Ignoring empty availability window %s for staff %s", w.id, w.staff_id)
            continue
        start = max(local_to_utc(d, w.start_time, zone), open_interval.start)
        end = min(local_to_utc(d, w.end_time, zone), open_interval.end)
        if start < end:
            out.append(Interval(start, end))
    out.sort()
    return out


def _validate_window(day_of_week: int, start_time: time, end_time: time) -> None:
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    if start_time >= end_time:
        raise ValueError("Start time must be before end time")


def _check_no_overlap(
    existing: Iterable[StaffAvailability],
    day_of_week: int,
    start_time: time,
    end_time: time,
    exclude_id: int | None = None,
) -> None:
    for w in existing:
        if w.id is not None and w.id == exclude_id:
            continue
        if w.day_of_week == day_of_week and start_time < w.end_time and end_time > w.start_time:
            raise AvailabilityOverlap(
                f"Window {start_time:%H:%M}-{end_time:%H:%M} overlaps "
                f"{w.start_time:%H:%M}-{w.end_time:%H:%M} on day {day_of_week}"
            )


async def list_availability(session: AsyncSession, staff_id: int) -> list[StaffAvailability]:
    result = await session.execute(
        select(StaffAvailability)
        .where(StaffAvailability.staff_id == staff_id)
        .order_by(StaffAvailability.day_of_week, StaffAvailability.start_time)
    )
    return list(result.scalars().all())


async def get_availability_window(session: AsyncSession, window_id: int) -> StaffAvailability:
    window = await session.get(StaffAvailability, window_id)
    if not window:
        raise NotFoundError("Availability window", window_id)
    return window


async def add_availability(
    session: AsyncSession, staff_id: int, day_of_week: int, start_time: time, end_time: time
) -> StaffAvailability:
    await get_staff(session, staff_id)
    _validate_window(day_of_week, start_time, end_time)
    _check_no_overlap(await list_availability(session, staff_id), day_of_week, start_time, end_time)
    window = StaffAvailability(
        staff_id=staff_id, day_of_week=day_of_week, start_time=start_time, end_time=end_time
    )
    session.add(window)
    await session.flush()
    await session.refresh(window)
    return window


async def update_availability(
    session: AsyncSession,
    window_id: int,
    day_of_week: int | None = None,
    start_time: time | None = None,
    end_time: time | None = None,
) -> StaffAvailability:
    window = await get_availability_window(session, window_id)
    new_day = window.day_of_week if day_of_week is None else day_of_week
    new_start = window.start_time if start_time is None else start_time
    new_end = window.end_time if end_time is None else end_time
    _validate_window(new_day, new_start, new_end)
    _check_no_overlap(
        await list_availability(session, window.staff_id), new_day, new_start, new_end, exclude_id=window.id
    )
    window.day_of_week = new_day
    window.start_time = new_start
    window.end_time = new_end
    session.add(window)
    await session.flush()
    await session.refresh(window)
    return window


async def delete_availability(session: AsyncSession, window_id: int) -> None:
    window = await get_availability_window(session, window_id)
    await session.delete(window)
    await session.flush()


async def replace_weekly_availability(
    session: AsyncSession, staff_id: int, windows: Iterable[tuple[int, time, time]]
) -> list[StaffAvailability]:
    """Swap the staff member's whole weekly template for `windows`.

    All windows are validated before anything is written.
    """
    await get_staff(session, staff_id)
    accepted: list[StaffAvailability] = []
    for day_of_week, start_time, end_time in windows:
        _validate_window(day_of_week, start_time, end_time)
        _check_no_overlap(accepted, day_of_week, start_time, end_time)
        accepted.append(
            StaffAvailability(
                staff_id=staff_id, day_of_week=day_of_week, start_time=start_time, end_time=end_time
            )
        )
    await session.execute(delete(StaffAvailability).where(StaffAvailability.staff_id == staff_id))
    session.add_all(accepted)
    await session.flush()
    return await list_availability(session, staff_id)
