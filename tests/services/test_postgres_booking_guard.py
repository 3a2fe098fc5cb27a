"""Booking guard on PostgreSQL: advisory lock and the no-overlap exclusion constraint.

Runs only when TEST_POSTGRES_URL points at a disposable database; the tables
are dropped and recreated around each test.
"""

import asyncio
import os
from datetime import datetime

import pytest
from sqlmodel import SQLModel

import app.models  # noqa: F401 - register tables
from app.core.db import build_engine, init_db
from app.core.exceptions import SlotConflict
from app.models.appointment import Appointment, AppointmentStatus
from app.services.appointment_service import _flush_guarded, commit_appointment, list_appointments

POSTGRES_URL = os.getenv("TEST_POSTGRES_URL")

pytestmark = pytest.mark.skipif(not POSTGRES_URL, reason="TEST_POSTGRES_URL not set")


@pytest.fixture
async def engine():
    engine = build_engine(POSTGRES_URL)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await init_db(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


def _appointment(clinic, start: datetime, end: datetime, status=AppointmentStatus.SCHEDULED) -> Appointment:
    return Appointment(
        staff_id=clinic.staff_id,
        location_id=clinic.location_id,
        service_id=clinic.service_id,
        client_id=clinic.other_client_id,
        start_time=start,
        end_time=end,
        status=status.value,
    )


async def test_concurrent_overlapping_commits_have_one_winner(session_maker, clinic) -> None:
    async def attempt(client_id: int, start: datetime, end: datetime):
        async with session_maker() as s:
            try:
                appointment = await commit_appointment(
                    s,
                    staff_id=clinic.staff_id,
                    location_id=clinic.location_id,
                    service_id=clinic.service_id,
                    client_id=client_id,
                    start_time=start,
                    end_time=end,
                )
                await s.commit()
                return appointment
            except SlotConflict as exc:
                await s.rollback()
                return exc

    results = await asyncio.gather(
        attempt(clinic.client_id, datetime(2025, 1, 6, 15), datetime(2025, 1, 6, 16)),
        attempt(clinic.other_client_id, datetime(2025, 1, 6, 15, 30), datetime(2025, 1, 6, 16, 30)),
    )

    assert sum(isinstance(r, Appointment) for r in results) == 1
    assert sum(isinstance(r, SlotConflict) for r in results) == 1
    async with session_maker() as s:
        assert len(await list_appointments(s, staff_id=clinic.staff_id)) == 1


async def test_exclusion_constraint_violation_surfaces_as_slot_conflict(session, clinic) -> None:
    session.add(_appointment(clinic, datetime(2025, 1, 6, 15), datetime(2025, 1, 6, 16)))
    await session.flush()
    clash = _appointment(clinic, datetime(2025, 1, 6, 15, 30), datetime(2025, 1, 6, 16, 30))
    session.add(clash)

    with pytest.raises(SlotConflict):
        await _flush_guarded(session, clash)


async def test_exclusion_constraint_ignores_non_blocking_rows(session, clinic) -> None:
    session.add(_appointment(clinic, datetime(2025, 1, 6, 15), datetime(2025, 1, 6, 16)))
    canceled = _appointment(
        clinic, datetime(2025, 1, 6, 15), datetime(2025, 1, 6, 16), AppointmentStatus.CANCELED
    )
    session.add(canceled)

    await _flush_guarded(session, canceled)

    assert canceled.id is not None
