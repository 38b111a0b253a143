"""Bookings app package.

The booking scheduler of the carsharing platform: availability checks,
the atomic reservation of a vehicle for a time window, cancellation and
the rental lifecycle (pickup, return, remote lock). No two confirmed or
active bookings of a vehicle may overlap; reservations are serialized
per vehicle and PostgreSQL additionally enforces an exclusion
constraint.
"""
