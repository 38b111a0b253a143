"""Models for the review domain.

A ``VehicleReview`` is the renter's rating (1 to 5 stars, optional
comment) of the car after a completed rental. Each booking can be
reviewed exactly once.
"""

from __future__ import annotations

import uuid

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class VehicleReview(models.Model):
    """Bewertung eines Fahrzeugs nach einer abgeschlossenen Miete."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.OneToOneField(
        'bookings.Booking',
        on_delete=models.CASCADE,
        related_name='review',
    )
    vehicle = models.ForeignKey(
        'vehicles.Vehicle',
        on_delete=models.SET_NULL,
        null=True,
        related_name='reviews',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='vehicle_reviews'
    )
    rating = models.PositiveSmallIntegerField(
        _("Bewertung"),
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text=_("1 (schlecht) bis 5 (ausgezeichnet)"),
    )
    comment = models.TextField(_("Kommentar"), blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Fahrzeugbewertung")
        verbose_name_plural = _("Fahrzeugbewertungen")
        ordering = ['-created_at']
        indexes = [models.Index(fields=['vehicle', '-created_at'], name='review_vehicle_created_idx')]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rating__gte=1, rating__lte=5),
                name='review_rating_range',
            ),
        ]

    def __str__(self) -> str:
        return f"Review by {self.user_id} for vehicle {self.vehicle_id} (Rating: {self.rating})"
