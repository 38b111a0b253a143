"""Live updates for observers of a vehicle's calendar.

``booking_changed`` is sent after commit whenever a booking of a vehicle
is reserved, cancelled or changes status. Receivers get ``vehicle_id``,
``booking_id``, ``status`` and ``schedule_version``; a UI can use it to
refresh the availability view. Delivery is a convenience, not part of
the booking guarantees.
"""

from __future__ import annotations

from typing import Callable

from django.dispatch import Signal  # type: ignore

booking_changed = Signal()


def subscribe_to_vehicle(vehicle_id: int, callback: Callable[..., None]) -> Callable[..., None]:
    """Connect ``callback`` for changes of one vehicle only.

    Returns the receiver actually connected; pass it to
    ``booking_changed.disconnect`` to unsubscribe.
    """

    def receiver(sender, **payload):
        if payload.get("vehicle_id") == vehicle_id:
            callback(**payload)

    booking_changed.connect(receiver, weak=False)
    return receiver
