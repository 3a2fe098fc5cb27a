from datetime import datetime

from pydantic import BaseModel, field_validator, model_validator

from app.core.config import settings
from app.core.timezones import to_naive_utc
from app.models.appointment import AppointmentStatus


class SlotInfo(BaseModel):
    start_utc: datetime
    end_utc: datetime
    local_start: str  # YYYY-MM-DDTHH:MM in the location's timezone
    staff_id: int
    available: bool


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    timezone: str
    slots: list[SlotInfo]


class AvailableStaffInfo(BaseModel):
    id: int
    name: str
    title: str | None = None


class BookAppointmentRequest(BaseModel):
    staff_id: int
    location_id: int
    service_id: int
    client_id: int
    start_time: datetime
    end_time: datetime
    notes: str | None = None

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            return None
        if len(normalized) > settings.max_appointment_notes_length:
            raise ValueError(f"Notes must be {settings.max_appointment_notes_length} characters or fewer.")
        return normalized

    @model_validator(mode="after")
    def validate_range(self) -> "BookAppointmentRequest":
        if to_naive_utc(self.start_time) >= to_naive_utc(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class RescheduleRequest(BaseModel):
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def validate_range(self) -> "RescheduleRequest":
        if to_naive_utc(self.start_time) >= to_naive_utc(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus
