"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass
class BookingEvent(DomainEvent):
    """Common payload: which booking on which vehicle, and the new calendar version"""
    booking_id: UUID = None
    vehicle_id: int = None
    status: str = ''
    schedule_version: int = 0


@dataclass
class BookingReserved(BookingEvent):
    """
    Event: A slot was reserved

    Triggers:
    - Confirmation email + in-app notification to the renter
    - Live update for observers of the vehicle
    """
    user_id: int = None
    start_time: datetime = None
    end_time: datetime = None
    status: str = field(default='confirmed')


@dataclass
class BookingCancelled(BookingEvent):
    """
    Event: Booking was cancelled, the slot is free again

    Triggers:
    - Cancellation email to the renter
    - Live update for observers of the vehicle
    """
    cancelled_by: int = None
    old_status: str = ''
    status: str = field(default='cancelled')


@dataclass
class BookingStatusChanged(BookingEvent):
    """
    Event: Rental started (CONFIRMED -> ACTIVE) or finished (ACTIVE -> COMPLETED)

    Triggers:
    - Live update for observers of the vehicle
    """
    old_status: str = ''


@dataclass
class VehicleLockChanged(BookingEvent):
    """Event: The renter locked or unlocked the car remotely"""
    action: str = ''
    user_id: int = None
