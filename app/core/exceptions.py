from datetime import datetime


class SchedulingError(Exception):
    """Base class for errors raised by the scheduling services."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SchedulingError):
    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class SlotConflict(SchedulingError):
    """The requested time overlaps an existing booking for the staff member.

    Retryable: the caller should ask the user to pick another time.
    """

    def __init__(self, staff_id: int, start_time: datetime, end_time: datetime) -> None:
        super().__init__("This time is no longer available. Please pick another time.")
        self.staff_id = staff_id
        self.start_time = start_time
        self.end_time = end_time


class InvalidAppointmentTime(SchedulingError):
    pass


class AvailabilityOverlap(SchedulingError):
    pass


class InvalidStatusTransition(SchedulingError):
    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot change appointment status from {current} to {requested}")
        self.current = current
        self.requested = requested
