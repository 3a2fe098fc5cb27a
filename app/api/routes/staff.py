from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, http_error
from app.api.schemas.catalog import (
    AvailabilityWindowPublic,
    AvailabilityWindowRequest,
    AvailabilityWindowUpdate,
    StaffCreateRequest,
    StaffPublic,
    WeeklyAvailabilityRequest,
)
from app.core.exceptions import SchedulingError
from app.services.catalog_service import create_staff, get_staff
from app.services.staff_availability_service import (
    add_availability,
    delete_availability,
    list_availability,
    replace_weekly_availability,
    update_availability,
)

router = APIRouter(prefix="/staff", tags=["staff"])


@router.post("", response_model=StaffPublic, status_code=status.HTTP_201_CREATED)
async def create(
    body: StaffCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> StaffPublic:
    try:
        staff = await create_staff(
            session,
            body.name,
            location_id=body.location_id,
            title=body.title,
            can_book_online=body.can_book_online,
        )
    except SchedulingError as e:
        raise http_error(e) from e
    return StaffPublic.model_validate(staff)


@router.get("/{staff_id}", response_model=StaffPublic)
async def get_one(
    staff_id: int,
    session: AsyncSession = Depends(get_session),
) -> StaffPublic:
    try:
        staff = await get_staff(session, staff_id)
    except SchedulingError as e:
        raise http_error(e) from e
    return StaffPublic.model_validate(staff)


@router.get("/{staff_id}/availability", response_model=list[AvailabilityWindowPublic])
async def get_availability(
    staff_id: int,
    session: AsyncSession = Depends(get_session),
) -> list[AvailabilityWindowPublic]:
    """Weekly windows ordered by day (0 = Sunday) then start time."""
    try:
        await get_staff(session, staff_id)
    except SchedulingError as e:
        raise http_error(e) from e
    windows = await list_availability(session, staff_id)
    return [AvailabilityWindowPublic.model_validate(w) for w in windows]


@router.post(
    "/{staff_id}/availability",
    response_model=AvailabilityWindowPublic,
    status_code=status.HTTP_201_CREATED,
)
async def add_window(
    staff_id: int,
    body: AvailabilityWindowRequest,
    session: AsyncSession = Depends(get_session),
) -> AvailabilityWindowPublic:
    try:
        window = await add_availability(session, staff_id, body.day_of_week, body.start_time, body.end_time)
    except SchedulingError as e:
        raise http_error(e) from e
    return AvailabilityWindowPublic.model_validate(window)


@router.put("/{staff_id}/availability", response_model=list[AvailabilityWindowPublic])
async def replace_windows(
    staff_id: int,
    body: WeeklyAvailabilityRequest,
    session: AsyncSession = Depends(get_session),
) -> list[AvailabilityWindowPublic]:
    try:
        windows = await replace_weekly_availability(
            session,
            staff_id,
            [(w.day_of_week, w.start_time, w.end_time) for w in body.windows],
        )
    except SchedulingError as e:
        raise http_error(e) from e
    return [AvailabilityWindowPublic.model_validate(w) for w in windows]


@router.patch("/availability/{window_id}", response_model=AvailabilityWindowPublic)
async def edit_window(
    window_id: int,
    body: AvailabilityWindowUpdate,
    session: AsyncSession = Depends(get_session),
) -> AvailabilityWindowPublic:
    try:
        window = await update_availability(
            session,
            window_id,
            day_of_week=body.day_of_week,
            start_time=body.start_time,
            end_time=body.end_time,
        )
    except SchedulingError as e:
        raise http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return AvailabilityWindowPublic.model_validate(window)


@router.delete("/availability/{window_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_window(
    window_id: int,
    session: AsyncSession = Depends(get_session),
) -> None:
    try:
        await delete_availability(session, window_id)
    except SchedulingError as e:
        raise http_error(e) from e
