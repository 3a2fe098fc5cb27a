from datetime import date, datetime, time, timedelta

import pytest

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.appointment import Appointment, AppointmentStatus
from app.models.location import Location
from app.models.slot import Interval
from app.models.staff import Staff, StaffAvailability
from app.services.slot_service import find_available_staff, generate_slots, get_available_slots

MONDAY = date(2025, 1, 6)
EXPECTED_UTC_HOURS = [14, 15, 16, 18, 19, 20, 21]  # 09,10,11,13,14,15,16 EST


def _utc(hour: int, minute: int = 0, d: date = MONDAY) -> datetime:
    return datetime.combine(d, time(hour, minute))


def _appointment(clinic, start: datetime, end: datetime, status: AppointmentStatus) -> Appointment:
    return Appointment(
        staff_id=clinic.staff_id,
        location_id=clinic.location_id,
        service_id=clinic.service_id,
        client_id=clinic.client_id,
        start_time=start,
        end_time=end,
        status=status.value,
    )


def test_generate_slots_steps_by_duration_and_drops_trailing_partial() -> None:
    # 45 minute service in a 3h10m window: 4 slots, the last 25 minutes unused
    window = Interval(_utc(14), _utc(17, 10))

    slots = generate_slots([window], [], 45, staff_id=7)

    assert [s.start_time for s in slots] == [_utc(14), _utc(14, 45), _utc(15, 30), _utc(16, 15)]
    assert all(s.end_time - s.start_time == timedelta(minutes=45) for s in slots)
    assert all(window.start <= s.start_time and s.end_time <= window.end for s in slots)
    assert all(s.available and s.staff_id == 7 for s in slots)


def test_generate_slots_slot_starting_when_booking_ends_is_available() -> None:
    busy = [Interval(_utc(14), _utc(15))]

    slots = generate_slots([Interval(_utc(14), _utc(16))], busy, 60, staff_id=1)

    assert [(s.start_time, s.available) for s in slots] == [(_utc(14), False), (_utc(15), True)]


def test_generate_slots_marks_partial_overlap_unavailable() -> None:
    busy = [Interval(_utc(14, 30), _utc(14, 45))]

    slots = generate_slots([Interval(_utc(14), _utc(16))], busy, 60, staff_id=1)

    assert [s.available for s in slots] == [False, True]


def test_generate_slots_buffer_is_added_before_overlap_test() -> None:
    busy = [Interval(_utc(15), _utc(16))]

    slots = generate_slots([Interval(_utc(14), _utc(17))], busy, 60, staff_id=1, buffer_minutes=10)

    assert [s.available for s in slots] == [False, False, True]
    assert slots[0].end_time == _utc(15)


def test_generate_slots_orders_across_intervals() -> None:
    intervals = [Interval(_utc(18), _utc(19)), Interval(_utc(14), _utc(15))]

    slots = generate_slots(intervals, [], 60, staff_id=1)

    assert [s.start_time for s in slots] == [_utc(14), _utc(18)]


def test_generate_slots_with_non_positive_duration_is_empty() -> None:
    assert generate_slots([Interval(_utc(14), _utc(15))], [], 0, staff_id=1) == []


async def test_get_available_slots_respects_lunch_break(session, clinic) -> None:
    slots = await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id)

    assert [s.start_time for s in slots] == [_utc(h) for h in EXPECTED_UTC_HOURS]
    assert all(s.available for s in slots)
    assert all(s.end_time - s.start_time == timedelta(minutes=60) for s in slots)


async def test_get_available_slots_marks_confirmed_booking_unavailable(session, clinic) -> None:
    session.add(_appointment(clinic, _utc(15), _utc(16), AppointmentStatus.CONFIRMED))
    await session.flush()

    slots = await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id)

    assert [s.start_time for s in slots if not s.available] == [_utc(15)]
    assert [s.start_time for s in slots if s.available] == [_utc(h) for h in EXPECTED_UTC_HOURS if h != 15]


@pytest.mark.parametrize(
    "status", [AppointmentStatus.CANCELED, AppointmentStatus.NO_SHOW, AppointmentStatus.CANCELLATION_REQUESTED]
)
async def test_get_available_slots_ignores_non_blocking_bookings(session, clinic, status) -> None:
    session.add(_appointment(clinic, _utc(15), _utc(16), status))
    await session.flush()

    slots = await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id)

    assert all(s.available for s in slots)


async def test_get_available_slots_sees_booking_running_into_first_slot(session, clinic) -> None:
    session.add(_appointment(clinic, _utc(13), _utc(14, 30), AppointmentStatus.SCHEDULED))
    await session.flush()

    slots = await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id)

    assert slots[0].start_time == _utc(14)
    assert not slots[0].available


async def test_get_available_slots_is_idempotent(session, clinic) -> None:
    session.add(_appointment(clinic, _utc(19), _utc(20), AppointmentStatus.SCHEDULED))
    await session.flush()

    first = await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id)
    second = await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id)

    assert first == second


async def test_get_available_slots_on_closed_day_is_empty(session, clinic) -> None:
    sunday = date(2025, 1, 5)

    assert await get_available_slots(session, clinic.staff_id, clinic.service_id, sunday, clinic.location_id) == []


async def test_get_available_slots_without_staff_availability_is_empty(session, clinic) -> None:
    tuesday = date(2025, 1, 7)  # location open, staff has no Tuesday windows

    assert await get_available_slots(session, clinic.staff_id, clinic.service_id, tuesday, clinic.location_id) == []


async def test_get_available_slots_without_business_hours_is_empty(session, clinic) -> None:
    location = await session.get(Location, clinic.location_id)
    location.business_hours = None
    await session.flush()

    assert await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id) == []


async def test_get_available_slots_unknown_ids_raise_not_found(session, clinic) -> None:
    with pytest.raises(NotFoundError):
        await get_available_slots(session, 9999, clinic.service_id, MONDAY, clinic.location_id)
    with pytest.raises(NotFoundError):
        await get_available_slots(session, clinic.staff_id, 9999, MONDAY, clinic.location_id)
    with pytest.raises(NotFoundError):
        await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, 9999)


async def test_get_available_slots_applies_configured_buffer(session, clinic, monkeypatch) -> None:
    monkeypatch.setattr(settings, "slot_buffer_minutes", 15)
    session.add(_appointment(clinic, _utc(16), _utc(17), AppointmentStatus.CONFIRMED))
    await session.flush()

    slots = await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id)

    # 10:00 EST now runs into the 11:00 booking once padded
    assert [s.start_time for s in slots if not s.available] == [_utc(15), _utc(16)]


async def test_get_available_slots_across_spring_forward_keeps_true_duration(session, clinic) -> None:
    location = await session.get(Location, clinic.location_id)
    location.business_hours = {"sunday": {"open": "00:00", "close": "06:00"}}
    session.add(StaffAvailability(staff_id=clinic.staff_id, day_of_week=0, start_time=time(0), end_time=time(6)))
    await session.flush()
    spring_forward = date(2025, 3, 9)

    slots = await get_available_slots(
        session, clinic.staff_id, clinic.service_id, spring_forward, clinic.location_id
    )

    # 00:00 EST (05:00 UTC) to 06:00 EDT (10:00 UTC) is five real hours
    assert [s.start_time for s in slots] == [_utc(h, d=spring_forward) for h in (5, 6, 7, 8, 9)]


async def test_find_available_staff_returns_free_working_staff(session, clinic) -> None:
    staff = await find_available_staff(session, clinic.location_id, clinic.service_id, _utc(15))

    assert [s.id for s in staff] == [clinic.staff_id]


async def test_find_available_staff_excludes_booked_or_off_duty_staff(session, clinic) -> None:
    session.add(_appointment(clinic, _utc(15, 30), _utc(16, 30), AppointmentStatus.SCHEDULED))
    await session.flush()

    assert await find_available_staff(session, clinic.location_id, clinic.service_id, _utc(15)) == []
    # 12:00 EST is the lunch break
    assert await find_available_staff(session, clinic.location_id, clinic.service_id, _utc(17)) == []


async def test_get_available_slots_with_offset_business_hours_is_empty(session, clinic) -> None:
    location = await session.get(Location, clinic.location_id)
    location.business_hours = {"monday": {"open": "09:00+01:00", "close": "17:00"}}
    await session.flush()

    assert await get_available_slots(session, clinic.staff_id, clinic.service_id, MONDAY, clinic.location_id) == []


async def test_find_available_staff_online_only_skips_offline_staff(session, clinic) -> None:
    front_desk_only = Staff(name="Rene", location_id=clinic.location_id, can_book_online=False)
    session.add(front_desk_only)
    await session.flush()
    session.add(StaffAvailability(staff_id=front_desk_only.id, day_of_week=1, start_time=time(9), end_time=time(17)))
    await session.flush()

    everyone = await find_available_staff(session, clinic.location_id, clinic.service_id, _utc(15))
    online = await find_available_staff(session, clinic.location_id, clinic.service_id, _utc(15), online_only=True)

    assert [s.name for s in everyone] == ["Dana", "Rene"]
    assert [s.name for s in online] == ["Dana"]
