"""
Vehicle Schedule Aggregate

This is the consistency boundary for preventing double bookings.
Every reservation of a vehicle MUST go through this aggregate while the
vehicle row is locked.

Strategy (Defense in Depth):
1. Domain validation: conflicts_with() checks for overlaps
2. Per-vehicle serialization: the repository locks the vehicle row
3. Database constraint: PostgreSQL EXCLUDE constraint on (vehicle, range)
"""

from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

from apps.bookings.domain.entities import BLOCKING_STATUSES, BookingStatus
from apps.bookings.domain.events import BookingReserved
from apps.bookings.exceptions import SlotTakenError
from shared.domain.base import Aggregate
from shared.domain.value_objects import TimeRange


@dataclass
class Slot:
    """
    Slot entity - a window of the vehicle occupied by one booking

    Only bookings in a blocking status are loaded as slots.
    """
    booking_id: UUID
    window: TimeRange
    status: BookingStatus = BookingStatus.CONFIRMED

    def __post_init__(self):
        self.status = BookingStatus(self.status)
        if self.status not in BLOCKING_STATUSES:
            raise ValueError(f"Booking in status {self.status.value} does not occupy a slot")


@dataclass
class VehicleSchedule(Aggregate):
    """
    Vehicle Schedule Aggregate Root

    Key invariants:
    - No two slots of the vehicle overlap on [start, end)
    - A vehicle flagged unavailable accepts no new slots (checked by the
      command handler, the flag lives on the vehicle row)

    The aggregate only knows the slots the repository loaded for it. When
    loaded for a reservation, the repository loads every slot that could
    overlap the requested window, under lock.
    """

    vehicle_id: int = None
    slots: List[Slot] = field(default_factory=list)
    version: int = 0

    def conflicts_with(self, window: TimeRange, exclude_booking_id: Optional[UUID] = None) -> List[Slot]:
        """Slots that overlap ``window``, optionally ignoring one booking"""
        return [
            slot for slot in self.slots
            if slot.booking_id != exclude_booking_id and slot.window.overlaps_with(window)
        ]

    def is_free(self, window: TimeRange, exclude_booking_id: Optional[UUID] = None) -> bool:
        return not self.conflicts_with(window, exclude_booking_id)

    def reserve(self, booking_id: UUID, window: TimeRange, *, user_id: int) -> Slot:
        """
        Occupy ``window`` for a new booking

        Raises:
            SlotTakenError: if any existing slot overlaps the window
        """
        if not self.is_free(window):
            raise SlotTakenError()

        slot = Slot(booking_id=booking_id, window=window)
        self.slots.append(slot)

        self.add_event(BookingReserved(
            booking_id=booking_id,
            vehicle_id=self.vehicle_id,
            user_id=user_id,
            start_time=window.start,
            end_time=window.end,
            schedule_version=self.version,
        ))
        return slot

    def release(self, booking_id: UUID) -> Optional[Slot]:
        """Drop the slot of a booking that no longer blocks the vehicle"""
        slot = next((s for s in self.slots if s.booking_id == booking_id), None)
        if slot is not None:
            self.slots.remove(slot)
        return slot

    def __str__(self):
        return f"VehicleSchedule(vehicle={self.vehicle_id}, slots={len(self.slots)})"
