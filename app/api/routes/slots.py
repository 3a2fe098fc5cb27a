from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, http_error
from app.api.schemas.appointment import AvailableSlotsResponse, AvailableStaffInfo, SlotInfo
from app.core.exceptions import SchedulingError
from app.core.timezones import get_zone, utc_to_local
from app.services.catalog_service import get_location
from app.services.slot_service import find_available_staff, get_available_slots, location_timezone

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    staff_id: int = Query(...),
    service_id: int = Query(...),
    location_id: int = Query(...),
    date_param: date = Query(..., alias="date"),
    only_available: bool = Query(False),
    session: AsyncSession = Depends(get_session),
) -> AvailableSlotsResponse:
    """Slots for the staff member on the given date (the location's local calendar day).

    Times are returned as UTC instants plus the location-local start.
    """
    try:
        location = await get_location(session, location_id)
        slots = await get_available_slots(session, staff_id, service_id, date_param, location_id)
    except SchedulingError as e:
        raise http_error(e) from e
    tz_name = location_timezone(location)
    zone = get_zone(tz_name)
    slot_infos = [
        SlotInfo(
            start_utc=s.start_time,
            end_utc=s.end_time,
            local_start=utc_to_local(s.start_time, zone).strftime("%Y-%m-%dT%H:%M"),
            staff_id=s.staff_id,
            available=s.available,
        )
        for s in slots
        if s.available or not only_available
    ]
    return AvailableSlotsResponse(
        date=date_param.isoformat(),
        timezone=tz_name,
        slots=slot_infos,
    )


@router.get("/staff", response_model=list[AvailableStaffInfo])
async def available_staff(
    location_id: int = Query(...),
    service_id: int = Query(...),
    start_utc: datetime = Query(...),
    online_only: bool = Query(False),
    session: AsyncSession = Depends(get_session),
) -> list[AvailableStaffInfo]:
    """Staff at the location who are working and free for the service at `start_utc`."""
    try:
        staff = await find_available_staff(session, location_id, service_id, start_utc, online_only=online_only)
    except SchedulingError as e:
        raise http_error(e) from e
    return [AvailableStaffInfo(id=s.id, name=s.name, title=s.title) for s in staff]
