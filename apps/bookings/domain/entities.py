"""
Booking Domain Entities

- BookingStatus: FSM states for the rental lifecycle
- ensure_transition(): guard used by every status change
"""

from enum import Enum
from typing import Dict, FrozenSet

from apps.bookings.exceptions import InvalidTransitionError


class BookingStatus(str, Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - CONFIRMED -> ACTIVE (renter picked the car up)
    - ACTIVE -> COMPLETED (renter returned the car)
    - CONFIRMED -> CANCELLED
    - ACTIVE -> CANCELLED

    COMPLETED and CANCELLED are terminal. Nothing is ever reverted.
    """
    CONFIRMED = 'confirmed'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]


STATUS_LABELS: Dict[BookingStatus, str] = {
    BookingStatus.CONFIRMED: 'Bestätigt',
    BookingStatus.ACTIVE: 'Aktiv',
    BookingStatus.COMPLETED: 'Abgeschlossen',
    BookingStatus.CANCELLED: 'Storniert',
}

TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.CONFIRMED: frozenset({BookingStatus.ACTIVE, BookingStatus.CANCELLED}),
    BookingStatus.ACTIVE: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Only these statuses occupy a slot on the vehicle's calendar
BLOCKING_STATUSES: FrozenSet[BookingStatus] = frozenset({BookingStatus.CONFIRMED, BookingStatus.ACTIVE})


def can_transition(current, target) -> bool:
    return BookingStatus(target) in TRANSITIONS[BookingStatus(current)]


def ensure_transition(current, target) -> BookingStatus:
    """
    Validate a status change

    Returns the target status.

    Raises:
        InvalidTransitionError: if the FSM does not allow the change
    """
    current, target = BookingStatus(current), BookingStatus(target)
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Status '{current.label}' kann nicht zu '{target.label}' wechseln."
        )
    return target
