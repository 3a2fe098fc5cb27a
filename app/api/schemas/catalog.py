from datetime import time
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.core.timezones import get_zone
from app.services.business_hours import parse_wall_time, validate_business_hours


class LocationCreateRequest(BaseModel):
    name: str
    timezone: str | None = None
    business_hours: dict[str, Any] | None = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        if value is not None and get_zone(value) is None:
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @field_validator("business_hours")
    @classmethod
    def validate_hours(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        return validate_business_hours(value) if value is not None else None


class BusinessHoursUpdateRequest(BaseModel):
    business_hours: dict[str, Any]

    @field_validator("business_hours")
    @classmethod
    def validate_hours(cls, value: dict[str, Any]) -> dict[str, Any]:
        return validate_business_hours(value)


class LocationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    timezone: str | None = None
    business_hours: dict[str, Any] | None = None
    is_active: bool


class StaffCreateRequest(BaseModel):
    name: str
    location_id: int | None = None
    title: str | None = None
    can_book_online: bool = True


class StaffPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location_id: int | None = None
    title: str | None = None
    can_book_online: bool
    is_active: bool


class AvailabilityWindowRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_wall_time(cls, value: time) -> time:
        return parse_wall_time(value)

    @model_validator(mode="after")
    def validate_range(self) -> "AvailabilityWindowRequest":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityWindowUpdate(BaseModel):
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_time: time | None = None
    end_time: time | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_wall_time(cls, value: time | None) -> time | None:
        return parse_wall_time(value) if value is not None else None


class WeeklyAvailabilityRequest(BaseModel):
    windows: list[AvailabilityWindowRequest]


class AvailabilityWindowPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    staff_id: int
    day_of_week: int
    start_time: time
    end_time: time


class ServiceCreateRequest(BaseModel):
    name: str
    duration: int = Field(gt=0)


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    duration: int
    is_active: bool


class ClientCreateRequest(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr | None = None
    phone: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None


class ClientPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
