"""Review submission rules."""

from __future__ import annotations

import logging
from uuid import UUID

from django.db import IntegrityError, transaction  # type: ignore

from .models import VehicleReview
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.exceptions import (
    AlreadyReviewedError,
    BookingNotFoundError,
    InvalidTransitionError,
    NotOwnerError,
)
from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


def submit_review(booking_id: UUID, user_id: int, rating: int, comment: str = "") -> VehicleReview:
    """
    Rate the car of a completed rental

    Only the renter may review, and only once per booking.

    Raises:
        BookingNotFoundError, NotOwnerError, InvalidTransitionError,
        AlreadyReviewedError
    """
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        raise BookingNotFoundError()
    if booking.user_id != user_id:
        raise NotOwnerError()
    if booking.status != BookingStatus.COMPLETED.value:
        raise InvalidTransitionError("Nur abgeschlossene Mieten können bewertet werden.")
    if VehicleReview.objects.filter(booking=booking).exists():
        raise AlreadyReviewedError()

    try:
        with transaction.atomic():
            review = VehicleReview.objects.create(
                booking=booking,
                vehicle_id=booking.vehicle_id,
                user_id=user_id,
                rating=rating,
                comment=comment.strip(),
            )
    except IntegrityError:
        # a parallel request for the same booking won
        raise AlreadyReviewedError()

    logger.info(f"Booking {booking.id} reviewed with {rating} stars")
    return review
