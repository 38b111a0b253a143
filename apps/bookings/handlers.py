"""
Booking Event Handlers

Reactions to committed booking changes. They run after the transaction
committed, so nothing here can undo a booking; failures are logged.
"""

import logging

from shared.application.message_bus import MessageBus, message_bus
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingEvent,
    BookingReserved,
    BookingStatusChanged,
    VehicleLockChanged,
)
from apps.bookings.signals import booking_changed

logger = logging.getLogger(__name__)


def enqueue_confirmation(event: BookingReserved):
    """Queue confirmation email and in-app notification for the renter"""
    from apps.bookings.tasks import notify_booking_confirmed

    try:
        notify_booking_confirmed.delay(str(event.booking_id))
    except Exception as e:
        logger.error(f"Could not queue confirmation for booking {event.booking_id}: {e}", exc_info=True)


def enqueue_cancellation(event: BookingCancelled):
    from apps.bookings.tasks import notify_booking_cancelled

    try:
        notify_booking_cancelled.delay(str(event.booking_id))
    except Exception as e:
        logger.error(f"Could not queue cancellation notice for booking {event.booking_id}: {e}", exc_info=True)


def broadcast_booking_change(event: BookingEvent):
    """Tell live observers of the vehicle that its calendar changed"""
    booking_changed.send(
        sender=type(event),
        vehicle_id=event.vehicle_id,
        booking_id=event.booking_id,
        status=event.status,
        schedule_version=event.schedule_version,
    )


def register_handlers(bus: MessageBus = message_bus):
    bus.register_event_handler(BookingReserved, enqueue_confirmation)
    bus.register_event_handler(BookingReserved, broadcast_booking_change)
    bus.register_event_handler(BookingCancelled, enqueue_cancellation)
    bus.register_event_handler(BookingCancelled, broadcast_booking_change)
    bus.register_event_handler(BookingStatusChanged, broadcast_booking_change)
    bus.register_event_handler(VehicleLockChanged, broadcast_booking_change)
