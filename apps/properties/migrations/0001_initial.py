import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Building",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                ("address_line1", models.CharField(blank=True, default="", max_length=255)),
                ("address_line2", models.CharField(blank=True, default="", max_length=255)),
                ("city", models.CharField(blank=True, default="", max_length=100)),
                ("state", models.CharField(blank=True, default="", max_length=50)),
                ("zip_code", models.CharField(blank=True, default="", max_length=20)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("description", models.TextField(blank=True, default="")),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Unit",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("unit_number", models.CharField(max_length=30)),
                ("floor", models.SmallIntegerField(blank=True, null=True)),
                ("rent_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("security_deposit", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("available", "Available"),
                            ("occupied", "Occupied"),
                            ("maintenance", "Under Maintenance"),
                            ("reserved", "Reserved"),
                        ],
                        db_index=True,
                        default="available",
                        max_length=15,
                    ),
                ),
                ("description", models.TextField(blank=True, default="")),
                (
                    "building",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="units",
                        to="properties.building",
                    ),
                ),
            ],
            options={
                "ordering": ["building", "unit_number"],
                "unique_together": {("building", "unit_number")},
            },
        ),
        migrations.CreateModel(
            name="OccupancySnapshot",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("snapshot_date", models.DateField()),
                ("total_units", models.PositiveIntegerField()),
                ("occupied_units", models.PositiveIntegerField()),
                ("upcoming_units", models.PositiveIntegerField(default=0)),
                ("available_units", models.PositiveIntegerField()),
                ("maintenance_units", models.PositiveIntegerField()),
                ("occupancy_rate", models.DecimalField(decimal_places=2, max_digits=5)),
                ("utilization_rate", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                (
                    "building",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="occupancy_snapshots",
                        to="properties.building",
                    ),
                ),
            ],
            options={
                "ordering": ["-snapshot_date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("building", "snapshot_date"), name="uniq_occupancy_snapshot_per_day"
                    )
                ],
            },
        ),
    ]
