from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, http_error
from app.api.schemas.appointment import (
    BookAppointmentRequest,
    RescheduleRequest,
    StatusChangeRequest,
)
from app.core.exceptions import SchedulingError
from app.core.timezones import get_zone, local_to_utc
from app.models.appointment import Appointment, AppointmentCreate, AppointmentPublic
from app.services.appointment_service import (
    archive_appointment,
    create_appointment,
    get_appointment,
    list_appointments,
    reschedule_appointment,
    transition_appointment,
)
from app.services.catalog_service import get_location
from app.services.slot_service import location_timezone

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(a, from_attributes=True)


def _day_start(d: date, zone: ZoneInfo | None) -> datetime:
    if zone is None:
        return datetime.combine(d, time.min)
    return local_to_utc(d, time.min, zone)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    data = AppointmentCreate(**body.model_dump())
    try:
        appointment = await create_appointment(session, data)
    except SchedulingError as e:
        raise http_error(e) from e
    return _to_public(appointment)


@router.get("", response_model=list[AppointmentPublic])
async def list_all(
    staff_id: int | None = Query(None),
    location_id: int | None = Query(None),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    include_archived: bool = Query(False),
    session: AsyncSession = Depends(get_session),
) -> list[AppointmentPublic]:
    """Appointments ordered by start. Dates are inclusive and, when a location is
    given, read as that location's local days; otherwise as UTC days."""
    zone: ZoneInfo | None = None
    if location_id is not None and (from_date or to_date):
        try:
            location = await get_location(session, location_id)
        except SchedulingError as e:
            raise http_error(e) from e
        zone = get_zone(location_timezone(location))
    start_inclusive = _day_start(from_date, zone) if from_date else None
    end_exclusive = _day_start(to_date + timedelta(days=1), zone) if to_date else None
    if start_inclusive and end_exclusive and start_inclusive >= end_exclusive:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from_date must not be after to_date",
        )
    appointments = await list_appointments(
        session,
        staff_id=staff_id,
        location_id=location_id,
        start_inclusive=start_inclusive,
        end_exclusive=end_exclusive,
        include_archived=include_archived,
    )
    return [_to_public(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_one(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    try:
        appointment = await get_appointment(session, appointment_id)
    except SchedulingError as e:
        raise http_error(e) from e
    return _to_public(appointment)


@router.post("/{appointment_id}/status", response_model=AppointmentPublic)
async def change_status(
    appointment_id: int,
    body: StatusChangeRequest,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    try:
        appointment = await transition_appointment(session, appointment_id, body.status)
    except SchedulingError as e:
        raise http_error(e) from e
    return _to_public(appointment)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentPublic)
async def reschedule(
    appointment_id: int,
    body: RescheduleRequest,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    try:
        appointment = await reschedule_appointment(session, appointment_id, body.start_time, body.end_time)
    except SchedulingError as e:
        raise http_error(e) from e
    return _to_public(appointment)


@router.post("/{appointment_id}/archive", response_model=AppointmentPublic)
async def archive(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    try:
        appointment = await archive_appointment(session, appointment_id)
    except SchedulingError as e:
        raise http_error(e) from e
    return _to_public(appointment)
