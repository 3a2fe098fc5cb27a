from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timezones import local_day_bounds
from app.models.appointment import BLOCKING_STATUSES, Appointment
from app.models.slot import Interval


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: touching intervals do not overlap."""
    return a_start < b_end and a_end > b_start


async def get_busy_intervals(
    session: AsyncSession,
    staff_id: int,
    range_start: datetime,
    range_end: datetime,
    exclude_appointment_id: int | None = None,
) -> list[Interval]:
    """[start, end) of every blocking appointment for the staff member that
    intersects [range_start, range_end), ordered by start."""
    q = select(Appointment.start_time, Appointment.end_time).where(
        Appointment.staff_id == staff_id,
        Appointment.status.in_(sorted(BLOCKING_STATUSES)),
        Appointment.start_time < range_end,
        Appointment.end_time > range_start,
    )
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(q.order_by(Appointment.start_time))
    return [Interval(start, end) for start, end in result.all()]


async def find_overlapping_appointment(
    session: AsyncSession,
    staff_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_appointment_id: int | None = None,
) -> Appointment | None:
    q = select(Appointment).where(
        Appointment.staff_id == staff_id,
        Appointment.status.in_(sorted(BLOCKING_STATUSES)),
        Appointment.start_time < end_time,
        Appointment.end_time > start_time,
    )
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(q.order_by(Appointment.start_time).limit(1))
    return result.scalars().first()


async def list_staff_appointments(
    session: AsyncSession,
    staff_id: int,
    d: date,
    zone: ZoneInfo,
    include_non_blocking: bool = False,
) -> list[Appointment]:
    """Appointments for the staff member starting on local date `d`."""
    day_start, day_end = local_day_bounds(d, zone)
    q = select(Appointment).where(
        Appointment.staff_id == staff_id,
        Appointment.start_time >= day_start,
        Appointment.start_time < day_end,
    )
    if not include_non_blocking:
        q = q.where(Appointment.status.in_(sorted(BLOCKING_STATUSES)))
    result = await session.execute(q.order_by(Appointment.start_time))
    return list(result.scalars().all())
