"""Lookups and minimal create/update for the records the scheduler consumes."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.client import Client
from app.models.location import Location
from app.models.service import Service
from app.models.staff import Staff
from app.services.business_hours import validate_business_hours


async def get_location(session: AsyncSession, location_id: int) -> Location:
    location = await session.get(Location, location_id)
    if not location:
        raise NotFoundError("Location", location_id)
    return location


async def get_staff(session: AsyncSession, staff_id: int) -> Staff:
    staff = await session.get(Staff, staff_id)
    if not staff:
        raise NotFoundError("Staff", staff_id)
    return staff


async def get_service(session: AsyncSession, service_id: int) -> Service:
    service = await session.get(Service, service_id)
    if not service:
        raise NotFoundError("Service", service_id)
    return service


async def get_client(session: AsyncSession, client_id: int) -> Client:
    client = await session.get(Client, client_id)
    if not client:
        raise NotFoundError("Client", client_id)
    return client


async def list_staff_for_location(session: AsyncSession, location_id: int) -> list[Staff]:
    result = await session.execute(
        select(Staff)
        .where(Staff.location_id == location_id, Staff.is_active == True)  # noqa: E712
        .order_by(Staff.id)
    )
    return list(result.scalars().all())


async def _add(session: AsyncSession, row):
    session.add(row)
    await session.flush()
    await session.refresh(row)
    return row


async def create_location(
    session: AsyncSession,
    name: str,
    timezone: str | None = None,
    business_hours: dict[str, Any] | None = None,
) -> Location:
    hours = validate_business_hours(business_hours) if business_hours is not None else None
    location = Location(name=name, business_hours=hours)
    if timezone:
        location.timezone = timezone
    return await _add(session, location)


async def update_business_hours(
    session: AsyncSession, location_id: int, business_hours: dict[str, Any]
) -> Location:
    location = await get_location(session, location_id)
    # Reassign so the JSON column is flagged dirty
    location.business_hours = validate_business_hours(business_hours)
    return await _add(session, location)


async def create_staff(
    session: AsyncSession,
    name: str,
    location_id: int | None = None,
    title: str | None = None,
    can_book_online: bool = True,
) -> Staff:
    if location_id is not None:
        await get_location(session, location_id)
    staff = Staff(name=name, location_id=location_id, title=title, can_book_online=can_book_online)
    return await _add(session, staff)


async def create_service(session: AsyncSession, name: str, duration: int) -> Service:
    if duration <= 0:
        raise ValueError("Service duration must be a positive number of minutes")
    return await _add(session, Service(name=name, duration=duration))


async def create_client(
    session: AsyncSession,
    first_name: str,
    last_name: str,
    email: str | None = None,
    phone: str | None = None,
) -> Client:
    return await _add(session, Client(first_name=first_name, last_name=last_name, email=email, phone=phone))
