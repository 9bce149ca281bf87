"""Booking lifecycle transition table"""
from typing import Dict, FrozenSet, Tuple

from domain.enums import BookingAction, BookingStatus
from domain.exceptions import InvalidTransitionError


TRANSITIONS: Dict[Tuple[BookingStatus, BookingAction], BookingStatus] = {
    (BookingStatus.HOLD, BookingAction.SUBMIT_PAYMENT): BookingStatus.PENDING_PAYMENT,
    (BookingStatus.HOLD, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.PENDING_APPROVAL, BookingAction.APPROVE): BookingStatus.PENDING_PAYMENT,
    (BookingStatus.PENDING_APPROVAL, BookingAction.REJECT): BookingStatus.CANCELLED,
    (BookingStatus.PENDING_APPROVAL, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.PENDING_PAYMENT, BookingAction.CONFIRM_PAYMENT): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING_PAYMENT, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingAction.CHECK_IN): BookingStatus.CHECKED_IN,
    (BookingStatus.CHECKED_IN, BookingAction.CHECK_OUT): BookingStatus.CHECKED_OUT,
    (BookingStatus.CHECKED_OUT, BookingAction.FILE_DAMAGE_REPORT): BookingStatus.CHECKED_OUT,
    (BookingStatus.CHECKED_OUT, BookingAction.PROCESS_REFUND): BookingStatus.REFUNDED,
}

# Statuses whose date range blocks the calendar regardless of ledger state
OCCUPYING_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
})

# Statuses that count towards revenue and occupancy
EARNING_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
    BookingStatus.CHECKED_OUT,
})

CLOSED_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CANCELLED,
    BookingStatus.REFUNDED,
})

# Actions after which the booking's ledger entries are released
RELEASING_ACTIONS: FrozenSet[BookingAction] = frozenset({
    BookingAction.REJECT,
    BookingAction.CANCEL,
})


def next_status(current: BookingStatus, action: BookingAction) -> BookingStatus:
    """Resolve the target status or raise InvalidTransitionError"""
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise InvalidTransitionError(current, action) from None


def allowed_actions(current: BookingStatus) -> FrozenSet[BookingAction]:
    return frozenset(action for (status, action) in TRANSITIONS if status == current)
