from datetime import UTC, datetime, time

from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Staff(SQLModel, table=True):
    __tablename__ = "staff"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    location_id: int | None = Field(default=None, foreign_key="locations.id", index=True)
    title: str | None = None
    can_book_online: bool = True
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utc_naive_now)


class StaffAvailability(SQLModel, table=True):
    """Recurring weekly working window, wall-clock in the location's timezone."""

    __tablename__ = "staff_availability"
    id: int | None = Field(default=None, primary_key=True)
    staff_id: int = Field(foreign_key="staff.id", index=True)
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday ... 6 = Saturday
    start_time: time
    end_time: time
    created_at: datetime = Field(default_factory=_utc_naive_now)
