import logging
from datetime import date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.timezones import get_zone, to_naive_utc, utc_to_local
from app.models.location import Location
from app.models.slot import Interval, Slot
from app.models.staff import Staff
from app.services.booking_index import get_busy_intervals, intervals_overlap
from app.services.business_hours import resolve_open_interval
from app.services.catalog_service import (
    get_location,
    get_service,
    get_staff,
    list_staff_for_location,
)
from app.services.staff_availability_service import list_availability, resolve_working_intervals

logger = logging.getLogger(__name__)


def location_timezone(location: Location) -> str:
    return location.timezone or settings.default_timezone


def generate_slots(
    working_intervals: list[Interval],
    busy_intervals: list[Interval],
    duration_minutes: int,
    staff_id: int,
    buffer_minutes: int = 0,
) -> list[Slot]:
    """Discretize working intervals into back-to-back slots of the service duration.

    Stepping starts at each interval's start and advances by the duration; a
    trailing remainder shorter than the duration is dropped. A slot is
    unavailable when [start, end + buffer) overlaps any busy interval.
    """
    if duration_minutes <= 0:
        return []
    step = timedelta(minutes=duration_minutes)
    pad = timedelta(minutes=max(buffer_minutes, 0))
    slots: list[Slot] = []
    for interval in working_intervals:
        current = interval.start
        while current + step <= interval.end:
            slot_end = current + step
            available = not any(
                intervals_overlap(current, slot_end + pad, busy.start, busy.end) for busy in busy_intervals
            )
            slots.append(Slot(start_time=current, end_time=slot_end, staff_id=staff_id, available=available))
            current = slot_end
    slots.sort(key=lambda s: s.start_time)
    return slots


async def working_intervals_for_date(
    session: AsyncSession, staff: Staff, location: Location, d: date
) -> list[Interval]:
    """Staff availability intersected with location hours on local date `d`."""
    if not (staff.is_active and location.is_active):
        return []
    tz_name = location_timezone(location)
    open_interval = resolve_open_interval(location.business_hours, tz_name, d)
    if open_interval is None:
        logger.debug("Location %s closed on %s", location.id, d)
        return []
    windows = await list_availability(session, staff.id)
    return resolve_working_intervals(windows, open_interval, tz_name, d)


async def get_available_slots(
    session: AsyncSession, staff_id: int, service_id: int, d: date, location_id: int
) -> list[Slot]:
    """All slots for the staff member on the location's local date `d`.

    Unknown ids raise NotFoundError. Closed days, missing availability and
    inactive records yield an empty list.
    """
    staff = await get_staff(session, staff_id)
    service = await get_service(session, service_id)
    location = await get_location(session, location_id)
    if not service.is_active:
        return []
    intervals = await working_intervals_for_date(session, staff, location, d)
    if not intervals:
        return []
    pad = timedelta(minutes=settings.slot_buffer_minutes)
    busy = await get_busy_intervals(session, staff_id, intervals[0].start, intervals[-1].end + pad)
    return generate_slots(intervals, busy, service.duration, staff_id, settings.slot_buffer_minutes)


async def find_available_staff(
    session: AsyncSession,
    location_id: int,
    service_id: int,
    start_time: datetime,
    online_only: bool = False,
) -> list[Staff]:
    """Active staff at the location who can take the service starting at `start_time`.

    With `online_only`, staff not open to online booking are left out.
    """
    location = await get_location(session, location_id)
    service = await get_service(session, service_id)
    zone = get_zone(location_timezone(location))
    if zone is None or not service.is_active:
        return []
    start = to_naive_utc(start_time)
    end = start + timedelta(minutes=service.duration)
    local_date = utc_to_local(start, zone).date()
    pad = timedelta(minutes=settings.slot_buffer_minutes)
    out: list[Staff] = []
    for staff in await list_staff_for_location(session, location_id):
        if online_only and not staff.can_book_online:
            continue
        intervals = await working_intervals_for_date(session, staff, location, local_date)
        if not any(i.start <= start and end <= i.end for i in intervals):
            continue
        busy = await get_busy_intervals(session, staff.id, start, end + pad)
        if not busy:
            out.append(staff)
    return out

