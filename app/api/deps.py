from fastapi import HTTPException, status

from app.core.db import get_session
from app.core.exceptions import (
    AvailabilityOverlap,
    InvalidStatusTransition,
    NotFoundError,
    SchedulingError,
    SlotConflict,
)

__all__ = ["get_session", "http_error"]


def http_error(exc: SchedulingError) -> HTTPException:
    """Map a scheduling error onto the HTTP status the client should see."""
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (SlotConflict, AvailabilityOverlap, InvalidStatusTransition)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=exc.message)
