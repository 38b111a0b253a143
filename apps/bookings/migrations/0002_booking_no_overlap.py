"""PostgreSQL-only exclusion constraint against overlapping bookings.

Other backends rely on the per-vehicle row lock taken by the
reservation handler.
"""

from django.db import migrations

CONSTRAINT_NAME = "booking_no_overlap"


def create_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    schema_editor.execute(
        f"""
        ALTER TABLE bookings_booking
        ADD CONSTRAINT {CONSTRAINT_NAME}
        EXCLUDE USING gist (
            vehicle_id WITH =,
            tstzrange(start_time, end_time, '[)') WITH &&
        )
        WHERE (status IN ('confirmed', 'active'))
        """
    )


def drop_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    schema_editor.execute(f"ALTER TABLE bookings_booking DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME}")


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(create_exclusion_constraint, drop_exclusion_constraint),
    ]
