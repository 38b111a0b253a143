"""Typed failures of the booking scheduler.

Every error carries a stable ``code`` that API clients switch on (for
example to tell the renter that somebody else just took the slot) and
the HTTP status the API answers with.
"""

from __future__ import annotations

from rest_framework import status  # type: ignore


class BookingError(Exception):
    """Base class for expected booking failures."""

    code = "BOOKING_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Buchung fehlgeschlagen."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "detail": self.message}


class InvalidIntervalError(BookingError):
    code = "INVALID_INTERVAL"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Das Ende muss nach dem Beginn liegen und der Zeitraum darf nicht in der Vergangenheit liegen."


class VehicleUnavailableError(BookingError):
    code = "VEHICLE_UNAVAILABLE"
    http_status = status.HTTP_409_CONFLICT
    default_message = "Das Fahrzeug ist derzeit nicht buchbar."


class SlotTakenError(BookingError):
    """Another booking already occupies (part of) the requested window."""

    code = "SLOT_TAKEN"
    http_status = status.HTTP_409_CONFLICT
    default_message = "Dieser Zeitraum wurde gerade von jemand anderem gebucht."


class NotOwnerError(BookingError):
    code = "NOT_OWNER"
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "Diese Buchung gehört einem anderen Nutzer."


class InvalidTransitionError(BookingError):
    code = "INVALID_TRANSITION"
    http_status = status.HTTP_409_CONFLICT
    default_message = "Diese Statusänderung ist nicht erlaubt."


class StoreUnavailableError(BookingError):
    """The database could not be reached or timed out; safe to retry with backoff."""

    code = "STORE_UNAVAILABLE"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Der Buchungsdienst ist vorübergehend nicht erreichbar."


class BookingNotFoundError(BookingError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Buchung nicht gefunden."


class VehicleNotFoundError(BookingError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Fahrzeug nicht gefunden."


class VehicleCommandError(BookingError):
    code = "VEHICLE_COMMAND_FAILED"
    http_status = status.HTTP_502_BAD_GATEWAY
    default_message = "Fehler beim Steuern des Fahrzeugs."


class AlreadyReviewedError(BookingError):
    code = "ALREADY_REVIEWED"
    http_status = status.HTTP_409_CONFLICT
    default_message = "Diese Buchung wurde bereits bewertet."
