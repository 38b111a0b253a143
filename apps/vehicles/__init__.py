"""Vehicles app package.

The carsharing fleet: vehicles with their per-minute rate, location and
availability flag, the per-vehicle calendar endpoints and the gateway to
the telematics provider for remote commands.
"""
