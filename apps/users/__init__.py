"""Users app package.

Holds the account model referenced by bookings and notifications.
Login and token issuance are handled by the external identity provider;
the API only validates the JWTs it issues.
"""
