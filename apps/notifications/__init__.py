"""Notifications app package.

Booking emails (confirmation, cancellation, reminder) and in-app
notifications. Delivery runs in Celery tasks of the bookings app.
"""
