from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, http_error
from app.api.schemas.catalog import (
    BusinessHoursUpdateRequest,
    LocationCreateRequest,
    LocationPublic,
)
from app.core.exceptions import SchedulingError
from app.services.catalog_service import create_location, get_location, update_business_hours

router = APIRouter(prefix="/locations", tags=["locations"])


@router.post("", response_model=LocationPublic, status_code=status.HTTP_201_CREATED)
async def create(
    body: LocationCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> LocationPublic:
    location = await create_location(
        session, body.name, timezone=body.timezone, business_hours=body.business_hours
    )
    return LocationPublic.model_validate(location)


@router.get("/{location_id}", response_model=LocationPublic)
async def get_one(
    location_id: int,
    session: AsyncSession = Depends(get_session),
) -> LocationPublic:
    try:
        location = await get_location(session, location_id)
    except SchedulingError as e:
        raise http_error(e) from e
    return LocationPublic.model_validate(location)


@router.put("/{location_id}/business-hours", response_model=LocationPublic)
async def set_business_hours(
    location_id: int,
    body: BusinessHoursUpdateRequest,
    session: AsyncSession = Depends(get_session),
) -> LocationPublic:
    """Replace the weekly hours. Days left out, or sent as null, are closed."""
    try:
        location = await update_business_hours(session, location_id, body.business_hours)
    except SchedulingError as e:
        raise http_error(e) from e
    return LocationPublic.model_validate(location)
