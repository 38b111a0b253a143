"""API tests for vehicle reviews."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import IntegrityError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.reviews.models import VehicleReview
from apps.users.models import User
from apps.vehicles.models import Vehicle


class ReviewAPITests(APITestCase):
    def setUp(self) -> None:
        self.renter = User.objects.create_user(
            email="renter@example.com", password="RenterPass123", full_name="Rita Renter"
        )
        self.other = User.objects.create_user(email="other@example.com", password="OtherPass123")
        self.vehicle = Vehicle.objects.create(
            name="VW ID.3",
            category="Kompakt",
            price_per_minute=Decimal("0.30"),
            latitude=Decimal("52.520008"),
            longitude=Decimal("13.404954"),
            address="Alexanderplatz 1, Berlin",
        )
        self.list_url = reverse("review-list")
        self.client.force_authenticate(self.renter)

    def _booking(self, status_value: str = "completed", user=None, hours_ago: int = 3) -> Booking:
        start = timezone.now() - timedelta(hours=hours_ago)
        return Booking.objects.create(
            vehicle=self.vehicle,
            user=user or self.renter,
            start_time=start,
            end_time=start + timedelta(hours=1),
            price_per_minute=Decimal("0.30"),
            total_price=Decimal("18.00"),
            status=status_value,
            vehicle_name=self.vehicle.name,
            vehicle_category=self.vehicle.category,
            pickup_address=self.vehicle.address,
        )

    def _review(self, booking: Booking, rating: int = 5, comment: str = ""):
        return self.client.post(
            self.list_url, {"booking": str(booking.id), "rating": rating, "comment": comment}, format="json"
        )

    def test_renter_can_review_completed_rental(self) -> None:
        booking = self._booking()

        response = self._review(booking, 4, "  Sauber und voll geladen.  ")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["rating"], 4)
        self.assertEqual(response.data["comment"], "Sauber und voll geladen.")
        self.assertEqual(response.data["vehicle_id"], self.vehicle.id)
        self.assertEqual(response.data["user_name"], "Rita Renter")

    def test_booking_can_be_reviewed_only_once(self) -> None:
        booking = self._booking()
        self._review(booking)

        response = self._review(booking, 1)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "ALREADY_REVIEWED")
        self.assertEqual(VehicleReview.objects.get().rating, 5)

    def test_unique_violation_from_a_parallel_request_is_already_reviewed(self) -> None:
        booking = self._booking()

        with mock.patch.object(VehicleReview.objects, "create", side_effect=IntegrityError("UNIQUE constraint failed")):
            response = self._review(booking)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "ALREADY_REVIEWED")

    def test_only_completed_rentals_can_be_reviewed(self) -> None:
        for hours_ago, status_value in ((3, "confirmed"), (6, "active"), (9, "cancelled")):
            response = self._review(self._booking(status_value, hours_ago=hours_ago))

            self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, (status_value, response.data))
            self.assertEqual(response.data["code"], "INVALID_TRANSITION")

        self.assertFalse(VehicleReview.objects.exists())

    def test_only_the_renter_can_review(self) -> None:
        booking = self._booking(user=self.other)

        response = self._review(booking)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.assertEqual(response.data["code"], "NOT_OWNER")

    def test_unknown_booking(self) -> None:
        response = self.client.post(
            self.list_url, {"booking": "00000000-0000-0000-0000-000000000000", "rating": 5}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["code"], "NOT_FOUND")

    def test_rating_must_be_between_one_and_five(self) -> None:
        booking = self._booking()

        for rating in (0, 6):
            response = self._review(booking, rating)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn("rating", response.data)

    def test_anonymous_users_can_read_but_not_write(self) -> None:
        self._review(self._booking())
        self.client.force_authenticate(None)

        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_200_OK)
        response = self._review(self._booking(hours_ago=6))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_summary_per_vehicle(self) -> None:
        other_vehicle = Vehicle.objects.create(
            name="Fiat 500e",
            category="Klein",
            price_per_minute=Decimal("0.25"),
            latitude=Decimal("52.5"),
            longitude=Decimal("13.4"),
            address="Potsdamer Platz 1, Berlin",
        )
        self._review(self._booking(hours_ago=3), 5)
        self._review(self._booking(hours_ago=6), 4)
        foreign = self._booking(hours_ago=9)
        Booking.objects.filter(pk=foreign.pk).update(vehicle=other_vehicle)
        self._review(foreign, 1)

        response = self.client.get(reverse("review-summary"), {"vehicle": self.vehicle.id})

        self.assertEqual(response.data, {"average_rating": 4.5, "count": 2})

    def test_summary_without_reviews(self) -> None:
        response = self.client.get(reverse("review-summary"))

        self.assertEqual(response.data, {"average_rating": None, "count": 0})
