from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DDL, Index, event
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELED = "canceled"
    NO_SHOW = "no_show"
    CANCELLATION_REQUESTED = "cancellation_requested"


# Statuses that occupy staff time
BLOCKING_STATUSES: frozenset[str] = frozenset(
    {
        AppointmentStatus.SCHEDULED.value,
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.IN_PROGRESS.value,
        AppointmentStatus.COMPLETED.value,
    }
)

TERMINAL_STATUSES: frozenset[str] = frozenset(
    {
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.CANCELED.value,
        AppointmentStatus.NO_SHOW.value,
    }
)

NO_OVERLAP_CONSTRAINT = "appointments_no_overlap_per_staff"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_staff_start", "staff_id", "start_time"),)

    id: int | None = Field(default=None, primary_key=True)
    staff_id: int = Field(foreign_key="staff.id", index=True)
    location_id: int = Field(foreign_key="locations.id", index=True)
    service_id: int = Field(foreign_key="services.id")
    client_id: int = Field(foreign_key="clients.id", index=True)
    start_time: datetime  # naive UTC
    end_time: datetime  # naive UTC
    status: str = Field(default=AppointmentStatus.SCHEDULED.value, index=True)
    notes: str | None = None
    archived: bool = False
    created_at: datetime = Field(default_factory=_utc_naive_now)

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES


_blocking_sql = ", ".join(f"'{s}'" for s in sorted(BLOCKING_STATUSES))

# PostgreSQL only: no two blocking appointments for one staff member may overlap.
event.listen(
    Appointment.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE appointments ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (staff_id WITH =, tsrange(start_time, end_time, '[)') WITH &&) "
        f"WHERE (status IN ({_blocking_sql}))"
    ).execute_if(dialect="postgresql"),
)


class AppointmentCreate(SQLModel):
    staff_id: int
    location_id: int
    service_id: int
    client_id: int
    start_time: datetime
    end_time: datetime
    notes: str | None = None


class AppointmentPublic(SQLModel):
    id: int
    staff_id: int
    location_id: int
    service_id: int
    client_id: int
    start_time: datetime
    end_time: datetime
    status: str
    notes: str | None = None
    archived: bool
    created_at: datetime
