"""Domain Exceptions"""
from datetime import date
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from domain.enums import BookingAction, BookingStatus


class BookingEngineError(Exception):
    """Base error for the reservation engine"""

    code = "BOOKING_ENGINE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ConflictError(BookingEngineError):
    """One or more property-days are already claimed.

    Expected under concurrency; the caller may retry with different dates.
    """

    code = "DATES_UNAVAILABLE"

    def __init__(
        self,
        message: str = "One or more requested dates are already booked",
        property_days: Iterable[Tuple[UUID, date]] = (),
        code: Optional[str] = None,
    ):
        super().__init__(message, code)
        self.property_days: List[Tuple[UUID, date]] = sorted(property_days)

    @property
    def days(self) -> List[date]:
        return sorted({day for _, day in self.property_days})


class InvalidTransitionError(BookingEngineError):
    """State machine guard violation"""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status: BookingStatus, attempted_action: BookingAction):
        super().__init__(
            f'Cannot {attempted_action.value.replace("_", " ")} booking with status "{current_status.value}"'
        )
        self.current_status = current_status
        self.attempted_action = attempted_action


class NotFoundError(BookingEngineError):
    code = "NOT_FOUND"


class ValidationFailure(BookingEngineError, ValueError):
    """Malformed request, raised before anything is persisted"""

    code = "VALIDATION_FAILED"


class AccessDenied(BookingEngineError):
    code = "FORBIDDEN"


class NotConfigured(BookingEngineError):
    """A feature whose settings the operator has not provided"""

    code = "NOT_CONFIGURED"


class DuplicateHoldError(Exception):
    """Raised by a hold store when a row collides with a live entry.

    ``inserted`` lists the rows of the same batch written before the
    collision; the ledger is responsible for deleting them.
    """

    def __init__(self, conflict, inserted):
        super().__init__(f"Hold already exists for {conflict.property_id} on {conflict.day}")
        self.conflict = conflict
        self.inserted = list(inserted)
