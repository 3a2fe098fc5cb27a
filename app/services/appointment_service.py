import logging
from datetime import datetime, timedelta

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    InvalidAppointmentTime,
    InvalidStatusTransition,
    NotFoundError,
    SlotConflict,
)
from app.core.timezones import to_naive_utc
from app.models.appointment import (
    BLOCKING_STATUSES,
    NO_OVERLAP_CONSTRAINT,
    TERMINAL_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
)
from app.services.booking_index import find_overlapping_appointment
from app.services.catalog_service import get_client, get_location, get_service, get_staff

logger = logging.getLogger(__name__)

S = AppointmentStatus
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    S.SCHEDULED.value: frozenset(
        {S.CONFIRMED.value, S.IN_PROGRESS.value, S.CANCELED.value, S.NO_SHOW.value, S.CANCELLATION_REQUESTED.value}
    ),
    S.CONFIRMED.value: frozenset(
        {S.IN_PROGRESS.value, S.CANCELED.value, S.NO_SHOW.value, S.CANCELLATION_REQUESTED.value}
    ),
    S.IN_PROGRESS.value: frozenset({S.COMPLETED.value}),
    S.CANCELLATION_REQUESTED.value: frozenset({S.CANCELED.value, S.CONFIRMED.value, S.SCHEDULED.value}),
    S.COMPLETED.value: frozenset(),
    S.CANCELED.value: frozenset(),
    S.NO_SHOW.value: frozenset(),
}

RESCHEDULABLE_STATUSES = frozenset({S.SCHEDULED.value, S.CONFIRMED.value})


async def lock_staff_schedule(session: AsyncSession, staff_id: int) -> None:
    """Serialize booking writes for one staff member until the transaction ends.

    PostgreSQL takes a transaction-scoped advisory lock. SQLite engines begin
    every transaction with BEGIN IMMEDIATE (see app.core.db), so the first
    statement issued here already holds the database write lock.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        await session.execute(
            text("SELECT pg_advisory_xact_lock(:namespace, :staff_id)"),
            {"namespace": settings.staff_lock_namespace, "staff_id": staff_id},
        )
    elif dialect == "sqlite":
        await session.execute(text("SELECT 1"))


def _is_overlap_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    constraint_name = getattr(getattr(orig, "diag", None), "constraint_name", None) or ""
    return constraint_name == NO_OVERLAP_CONSTRAINT or NO_OVERLAP_CONSTRAINT in str(orig)


async def _ensure_free(
    session: AsyncSession,
    staff_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_appointment_id: int | None = None,
) -> None:
    """Raise SlotConflict if [start, end + buffer) overlaps a blocking appointment.

    Must run after lock_staff_schedule in the same transaction.
    """
    padded_end = end_time + timedelta(minutes=settings.slot_buffer_minutes)
    existing = await find_overlapping_appointment(
        session, staff_id, start_time, padded_end, exclude_appointment_id=exclude_appointment_id
    )
    if existing:
        logger.info(
            "Slot conflict for staff %s at %s-%s (existing appointment %s)",
            staff_id, start_time, end_time, existing.id,
        )
        raise SlotConflict(staff_id, start_time, end_time)


async def _flush_guarded(session: AsyncSession, appointment: Appointment) -> None:
    try:
        await session.flush()
    except IntegrityError as exc:
        if _is_overlap_violation(exc):
            raise SlotConflict(appointment.staff_id, appointment.start_time, appointment.end_time) from exc
        raise


async def commit_appointment(
    session: AsyncSession,
    staff_id: int,
    location_id: int,
    service_id: int,
    client_id: int,
    start_time: datetime,
    end_time: datetime,
    notes: str | None = None,
) -> Appointment:
    """Insert a scheduled appointment unless it overlaps an existing booking.

    The overlap check and the insert run under a per-staff lock held until the
    caller commits, so of two concurrent requests for the same time exactly one
    succeeds and the other raises SlotConflict.
    """
    start = to_naive_utc(start_time)
    end = to_naive_utc(end_time)
    if start >= end:
        raise InvalidAppointmentTime("Appointment start time must be before end time.")
    await get_staff(session, staff_id)
    await get_location(session, location_id)
    await get_service(session, service_id)
    await get_client(session, client_id)

    await lock_staff_schedule(session, staff_id)
    await _ensure_free(session, staff_id, start, end)
    appointment = Appointment(
        staff_id=staff_id,
        location_id=location_id,
        service_id=service_id,
        client_id=client_id,
        start_time=start,
        end_time=end,
        status=AppointmentStatus.SCHEDULED.value,
        notes=notes,
    )
    session.add(appointment)
    await _flush_guarded(session, appointment)
    await session.refresh(appointment)
    logger.info(
        "Booked appointment %s for staff %s at %s-%s", appointment.id, staff_id, start, end
    )
    return appointment


async def create_appointment(session: AsyncSession, data: AppointmentCreate) -> Appointment:
    return await commit_appointment(
        session,
        staff_id=data.staff_id,
        location_id=data.location_id,
        service_id=data.service_id,
        client_id=data.client_id,
        start_time=data.start_time,
        end_time=data.end_time,
        notes=data.notes,
    )


async def get_appointment(session: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment", appointment_id)
    return appointment


async def list_appointments(
    session: AsyncSession,
    staff_id: int | None = None,
    location_id: int | None = None,
    start_inclusive: datetime | None = None,
    end_exclusive: datetime | None = None,
    include_archived: bool = False,
) -> list[Appointment]:
    q = select(Appointment).order_by(Appointment.start_time)
    if staff_id is not None:
        q = q.where(Appointment.staff_id == staff_id)
    if location_id is not None:
        q = q.where(Appointment.location_id == location_id)
    if start_inclusive is not None:
        q = q.where(Appointment.start_time >= start_inclusive)
    if end_exclusive is not None:
        q = q.where(Appointment.start_time < end_exclusive)
    if not include_archived:
        q = q.where(Appointment.archived == False)  # noqa: E712
    result = await session.execute(q)
    return list(result.scalars().all())


async def transition_appointment(
    session: AsyncSession, appointment_id: int, new_status: AppointmentStatus | str
) -> Appointment:
    """Move an appointment to `new_status` along the allowed transitions.

    Returning to a blocking status re-runs the conflict check, since the time
    may have been booked by someone else meanwhile.
    """
    target = AppointmentStatus(new_status).value
    appointment = await get_appointment(session, appointment_id)
    current = appointment.status
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransition(current, target)
    if current not in BLOCKING_STATUSES and target in BLOCKING_STATUSES:
        await lock_staff_schedule(session, appointment.staff_id)
        await _ensure_free(
            session,
            appointment.staff_id,
            appointment.start_time,
            appointment.end_time,
            exclude_appointment_id=appointment.id,
        )
    appointment.status = target
    session.add(appointment)
    await _flush_guarded(session, appointment)
    await session.refresh(appointment)
    logger.info("Appointment %s status %s -> %s", appointment.id, current, target)
    return appointment


async def reschedule_appointment(
    session: AsyncSession, appointment_id: int, start_time: datetime, end_time: datetime
) -> Appointment:
    start = to_naive_utc(start_time)
    end = to_naive_utc(end_time)
    if start >= end:
        raise InvalidAppointmentTime("Appointment start time must be before end time.")
    appointment = await get_appointment(session, appointment_id)
    if appointment.status not in RESCHEDULABLE_STATUSES:
        raise InvalidAppointmentTime(f"Cannot reschedule an appointment that is {appointment.status}.")
    await lock_staff_schedule(session, appointment.staff_id)
    await _ensure_free(session, appointment.staff_id, start, end, exclude_appointment_id=appointment.id)
    appointment.start_time = start
    appointment.end_time = end
    session.add(appointment)
    await _flush_guarded(session, appointment)
    await session.refresh(appointment)
    logger.info("Rescheduled appointment %s to %s-%s", appointment.id, start, end)
    return appointment


async def archive_appointment(session: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await get_appointment(session, appointment_id)
    if appointment.status not in TERMINAL_STATUSES:
        raise InvalidStatusTransition(appointment.status, "archived")
    appointment.archived = True
    session.add(appointment)
    await session.flush()
    await session.refresh(appointment)
    return appointment
