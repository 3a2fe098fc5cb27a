from app.models.location import Location
from app.models.staff import Staff, StaffAvailability
from app.models.service import Service
from app.models.client import Client
from app.models.appointment import (
    BLOCKING_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
)

__all__ = [
    "Location",
    "Staff",
    "StaffAvailability",
    "Service",
    "Client",
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "AppointmentStatus",
    "BLOCKING_STATUSES",
]
