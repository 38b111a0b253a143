"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from apps.users.models import User
from apps.vehicles.models import Vehicle

# Fixed "now" for handler tests; bookings on 2025-01-10 lie in the future.
FROZEN_NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_clock():
    return lambda: FROZEN_NOW


@pytest.fixture
def renter(db):
    return User.objects.create_user(
        email="renter@example.com",
        password="RenterPass123",
        full_name="Rita Renter",
    )


@pytest.fixture
def other_renter(db):
    return User.objects.create_user(
        email="other@example.com",
        password="OtherPass123",
        full_name="Otto Other",
    )


@pytest.fixture
def administrator(db):
    return User.objects.create_user(
        email="fleet@example.com",
        password="FleetPass123",
        role=User.RoleChoices.ADMIN,
    )


@pytest.fixture
def vehicle(db):
    return Vehicle.objects.create(
        name="VW ID.3",
        category="Kompakt",
        price_per_minute=Decimal("0.30"),
        latitude=Decimal("52.520008"),
        longitude=Decimal("13.404954"),
        address="Alexanderplatz 1, Berlin",
    )
