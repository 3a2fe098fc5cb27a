from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Location(SQLModel, table=True):
    __tablename__ = "locations"
    id: int | None = Field(default=None, primary_key=True)
    name: str
    timezone: str | None = Field(default="America/New_York")
    # weekday name -> {"open": "HH:MM", "close": "HH:MM"} or null when closed
    business_hours: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utc_naive_now)
