from datetime import datetime
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict


class Interval(NamedTuple):
    """Half-open [start, end) in naive UTC."""

    start: datetime
    end: datetime


class Slot(BaseModel):
    """Derived bookable interval; never persisted."""

    model_config = ConfigDict(frozen=True)

    start_time: datetime
    end_time: datetime
    staff_id: int
    available: bool
