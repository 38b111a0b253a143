"""Notification services: booking emails and in-app messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.html import strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.users.models import CustomUser
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)

BRAND = "MOOVY"


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Versand einer E-Mail-Benachrichtigung.

    Fehler werden protokolliert und als ``False`` gemeldet; eine
    Benachrichtigung darf eine Buchung nie scheitern lassen.

    Args:
        recipient_email: Empfänger
        subject: Betreff
        html_message: HTML-Version; die Textversion wird daraus abgeleitet

    Returns:
        bool: True, wenn die E-Mail verschickt wurde
    """
    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def _booking_context(booking: "Booking") -> dict:
    start = timezone.localtime(booking.start_time)
    end = timezone.localtime(booking.end_time)
    return {
        "booking": booking,
        "customer_name": booking.user.display_name,
        "vehicle_name": booking.vehicle_name,
        "vehicle_category": booking.vehicle_category,
        "pickup_address": booking.pickup_address,
        "date": start.strftime("%d.%m.%Y"),
        "start": start.strftime("%H:%M"),
        "end": end.strftime("%H:%M"),
        "total_price": booking.total_price,
        "reference": str(booking.id)[:8].upper(),
    }


def send_booking_confirmation_email(booking: "Booking") -> bool:
    """Buchungsbestätigung mit Fahrzeug, Zeitraum und Preis."""
    context = _booking_context(booking)
    subject = f"Ihre Buchung {context['reference']} ist bestätigt"

    html_message = f"""
    <html>
    <body>
        <h2>Hallo {context['customer_name']},</h2>
        <p>Ihre Buchung ist bestätigt.</p>

        <h3>Details:</h3>
        <ul>
            <li><strong>Fahrzeug:</strong> {context['vehicle_name']} ({context['vehicle_category']})</li>
            <li><strong>Datum:</strong> {context['date']}</li>
            <li><strong>Zeitraum:</strong> {context['start']} bis {context['end']} Uhr</li>
            <li><strong>Abholort:</strong> {context['pickup_address']}</li>
            <li><strong>Gesamtpreis:</strong> {context['total_price']} €</li>
        </ul>

        <p>Kurz vor Mietbeginn erinnern wir Sie noch einmal.</p>

        <p>Gute Fahrt,<br>Ihr {BRAND}-Team</p>
    </body>
    </html>
    """

    return send_email_notification(
        recipient_email=booking.user.email,
        subject=subject,
        html_message=html_message,
    )


def send_booking_cancellation_email(booking: "Booking") -> bool:
    context = _booking_context(booking)
    subject = f"Ihre Buchung {context['reference']} wurde storniert"

    html_message = f"""
    <html>
    <body>
        <h2>Hallo {context['customer_name']},</h2>
        <p>Ihre Buchung für <strong>{context['vehicle_name']}</strong> am {context['date']}
        ({context['start']} bis {context['end']} Uhr) wurde storniert.</p>

        <p>Das Fahrzeug ist für diesen Zeitraum wieder frei buchbar.</p>

        <p>Ihr {BRAND}-Team</p>
    </body>
    </html>
    """

    return send_email_notification(
        recipient_email=booking.user.email,
        subject=subject,
        html_message=html_message,
    )


def send_booking_reminder_email(booking: "Booking") -> bool:
    """Erinnerung vor Mietbeginn mit Abholort."""
    context = _booking_context(booking)
    subject = f"Erinnerung: Ihre Miete beginnt um {context['start']} Uhr"

    html_message = f"""
    <html>
    <body>
        <h2>Hallo {context['customer_name']},</h2>
        <p>Ihr <strong>{context['vehicle_name']}</strong> steht ab {context['start']} Uhr bereit.</p>

        <h3>Abholung:</h3>
        <ul>
            <li><strong>Adresse:</strong> {context['pickup_address']}</li>
            <li><strong>Rückgabe bis:</strong> {context['end']} Uhr</li>
        </ul>

        <p>Das Fahrzeug entriegeln Sie zu Mietbeginn direkt in der App.</p>

        <p>Ihr {BRAND}-Team</p>
    </body>
    </html>
    """

    return send_email_notification(
        recipient_email=booking.user.email,
        subject=subject,
        html_message=html_message,
    )


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def create_in_app_notification(user: "CustomUser", title: str, message: str) -> bool:
    """
    In-App-Benachrichtigung anlegen.

    Returns:
        bool: True, wenn die Benachrichtigung gespeichert wurde
    """
    try:
        from .models import Notification

        Notification.objects.create(
            user=user,
            title=title,
            message=message,
        )

        logger.info(f"In-app notification created for {user.email}: {title}")
        return True

    except Exception as e:
        logger.error(f"Failed to create in-app notification for {user.email}: {e}", exc_info=True)
        return False
