"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from .domain.entities import BookingStatus
from .models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (laufen automatisch über Celery Beat)
# ============================================================================

@shared_task(name="bookings.send_booking_reminders")
def send_booking_reminders() -> dict[str, int]:
    """
    Erinnerung kurz vor Mietbeginn.

    Bestätigte Buchungen, deren Beginn innerhalb der nächsten
    ``BOOKING_REMINDER_LEAD_MINUTES`` liegt, bekommen genau eine
    Erinnerung. Läuft alle 15 Minuten über Celery Beat.

    Returns:
        dict: {"sent": Anzahl verschickter Erinnerungen}
    """
    now = timezone.now()
    lead = timedelta(minutes=getattr(settings, "BOOKING_REMINDER_LEAD_MINUTES", 60))
    sent_count = 0

    upcoming = Booking.objects.filter(
        status=BookingStatus.CONFIRMED.value,
        reminder_sent=False,
        start_time__gt=now,
        start_time__lte=now + lead,
    ).select_related("user")

    for booking in upcoming:
        # Claim first, overlapping Beat runs must not remind twice.
        claimed = Booking.objects.filter(pk=booking.pk, reminder_sent=False).update(reminder_sent=True)
        if not claimed:
            continue

        from apps.notifications.services import create_in_app_notification, send_booking_reminder_email

        if not send_booking_reminder_email(booking):
            # Release the claim so the next run tries again before the start.
            Booking.objects.filter(pk=booking.pk).update(reminder_sent=False)
            logger.warning(f"Reminder for booking {booking.id} not delivered, will retry on the next run")
            continue

        create_in_app_notification(
            user=booking.user,
            title="Ihre Miete beginnt bald",
            message=(
                f"{booking.vehicle_name} steht ab {timezone.localtime(booking.start_time):%H:%M} Uhr "
                f"an {booking.pickup_address} für Sie bereit."
            ),
        )
        sent_count += 1
        logger.info(f"Sent reminder for booking {booking.id} to {booking.user.email}")

    if sent_count > 0:
        logger.info(f"Sent {sent_count} booking reminders")

    return {"sent": sent_count}


# ============================================================================
# NOTIFICATION TASKS
# ============================================================================

@shared_task(name="bookings.notify_booking_confirmed")
def notify_booking_confirmed(booking_id: str) -> bool:
    """Buchungsbestätigung an den Kunden."""
    try:
        booking = Booking.objects.select_related("user").get(id=booking_id)

        from apps.notifications.services import create_in_app_notification, send_booking_confirmation_email

        send_booking_confirmation_email(booking)
        create_in_app_notification(
            user=booking.user,
            title="Buchung bestätigt",
            message=(
                f"Ihre Buchung für {booking.vehicle_name} am "
                f"{timezone.localtime(booking.start_time):%d.%m.%Y um %H:%M} Uhr ist bestätigt."
            ),
        )

        logger.info(f"[NOTIFICATION] Booking confirmed notifications sent: {booking.id}")
        return True
    except Booking.DoesNotExist:
        logger.error(f"Booking {booking_id} not found for confirmation notification")
        return False


@shared_task(name="bookings.notify_booking_cancelled")
def notify_booking_cancelled(booking_id: str) -> bool:
    """Stornierungsbestätigung an den Kunden."""
    try:
        booking = Booking.objects.select_related("user").get(id=booking_id)

        from apps.notifications.services import create_in_app_notification, send_booking_cancellation_email

        send_booking_cancellation_email(booking)
        create_in_app_notification(
            user=booking.user,
            title="Buchung storniert",
            message=f"Ihre Buchung für {booking.vehicle_name} wurde storniert.",
        )

        logger.info(f"[NOTIFICATION] Booking cancelled: {booking.id} for {booking.user.email}")
        return True
    except Booking.DoesNotExist:
        logger.error(f"Booking {booking_id} not found for cancellation notification")
        return False
