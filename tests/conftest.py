import os
from dataclasses import dataclass
from datetime import date, time

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.core.db import build_engine, build_session_maker, get_session, init_db  # noqa: E402
from app.models.client import Client  # noqa: E402
from app.models.location import Location  # noqa: E402
from app.models.service import Service  # noqa: E402
from app.models.staff import Staff, StaffAvailability  # noqa: E402

# 2025-01-06 is a Monday; New York is on EST (UTC-5) that day.
MONDAY = date(2025, 1, 6)
MONDAY_DOW = 1  # Sunday-based


@dataclass
class Clinic:
    location_id: int
    staff_id: int
    service_id: int
    client_id: int
    other_client_id: int


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'scheduling.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def clinic(session_maker) -> Clinic:
    """Location open Mon 09:00-17:00 New York, one staff member with a lunch
    break (09-12, 13-17), a 60 minute service and two clients. Committed."""
    async with session_maker() as session:
        location = Location(
            name="Main",
            timezone="America/New_York",
            business_hours={
                "monday": {"open": "09:00", "close": "17:00"},
                "tuesday": {"open": "09:00", "close": "17:00"},
                "sunday": None,
            },
        )
        session.add(location)
        await session.flush()
        staff = Staff(name="Dana", location_id=location.id)
        service = Service(name="Facial", duration=60)
        client = Client(first_name="Ari", last_name="Lee")
        other = Client(first_name="Sam", last_name="Ode")
        session.add_all([staff, service, client, other])
        await session.flush()
        session.add_all(
            [
                StaffAvailability(staff_id=staff.id, day_of_week=MONDAY_DOW, start_time=time(9), end_time=time(12)),
                StaffAvailability(staff_id=staff.id, day_of_week=MONDAY_DOW, start_time=time(13), end_time=time(17)),
            ]
        )
        await session.commit()
        return Clinic(
            location_id=location.id,
            staff_id=staff.id,
            service_id=service.id,
            client_id=client.id,
            other_client_id=other.id,
        )


@pytest.fixture
async def session(session_maker, clinic):
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def api_client(session_maker, clinic):
    from app.main import app

    async def _get_test_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
