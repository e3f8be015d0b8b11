import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("leases", "0001_initial"),
        ("properties", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="JobLock",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100, unique=True)),
                ("is_locked", models.BooleanField(default=False)),
                ("owner", models.CharField(blank=True, default="", max_length=64)),
                ("acquired_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="JobRun",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("job_name", models.CharField(db_index=True, max_length=100)),
                (
                    "trigger",
                    models.CharField(
                        choices=[("scheduled", "Scheduled"), ("manual", "Manual")],
                        default="scheduled",
                        max_length=10,
                    ),
                ),
                ("cycle_month", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("cycle_year", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("started", "Started"), ("completed", "Completed"), ("failed", "Failed")],
                        db_index=True,
                        default="started",
                        max_length=10,
                    ),
                ),
                ("started_at", models.DateTimeField()),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("duration_ms", models.PositiveIntegerField(blank=True, null=True)),
                ("tenancies_processed", models.PositiveIntegerField(default=0)),
                ("payments_created", models.PositiveIntegerField(default=0)),
                ("rent_cycles_created", models.PositiveIntegerField(default=0)),
                ("skipped_count", models.PositiveIntegerField(default=0)),
                ("failed_count", models.PositiveIntegerField(default=0)),
                ("details", models.JSONField(blank=True, default=dict)),
                ("error_message", models.TextField(blank=True, default="")),
            ],
            options={
                "ordering": ["-started_at"],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "payment_type",
                    models.CharField(
                        choices=[
                            ("rent", "Rent"),
                            ("security_deposit", "Security Deposit"),
                            ("maintenance", "Maintenance"),
                            ("utility", "Utility"),
                            ("late_fee", "Late Fee"),
                            ("other", "Other"),
                        ],
                        db_index=True,
                        default="rent",
                        max_length=20,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("due_date", models.DateField(db_index=True)),
                ("payment_date", models.DateField(blank=True, null=True)),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("cash", "Cash"),
                            ("bank_transfer", "Bank Transfer"),
                            ("upi", "UPI"),
                            ("card", "Card"),
                            ("cheque", "Cheque"),
                        ],
                        default="",
                        max_length=20,
                    ),
                ),
                ("transaction_id", models.CharField(blank=True, default="", max_length=100)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("partial", "Partially Paid"),
                            ("paid", "Paid"),
                            ("overdue", "Overdue"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("late_fee", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "tenancy",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="leases.tenancy",
                    ),
                ),
            ],
            options={
                "ordering": ["-due_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["tenancy", "payment_type", "due_date"], name="payment_tenancy_due_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RentCycle",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("cycle_month", models.PositiveSmallIntegerField()),
                ("cycle_year", models.PositiveSmallIntegerField()),
                ("rent_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("due_date", models.DateField()),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("overdue", "Overdue"),
                            ("partial", "Partially Paid"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("paid_amount", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("payment_date", models.DateField(blank=True, null=True)),
                ("late_fee", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                (
                    "payment",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="rent_cycle",
                        to="billing.payment",
                    ),
                ),
                (
                    "tenancy",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rent_cycles",
                        to="leases.tenancy",
                    ),
                ),
            ],
            options={
                "ordering": ["-cycle_year", "-cycle_month"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("tenancy", "cycle_month", "cycle_year"),
                        name="uniq_rent_cycle_per_tenancy_period",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="RevenueSnapshot",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("snapshot_month", models.PositiveSmallIntegerField()),
                ("snapshot_year", models.PositiveSmallIntegerField()),
                ("total_rent_due", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_rent_collected", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_outstanding", models.DecimalField(decimal_places=2, max_digits=12)),
                ("collection_rate", models.DecimalField(decimal_places=2, max_digits=5)),
                ("average_rent_per_unit", models.DecimalField(decimal_places=2, max_digits=10)),
                ("total_active_units", models.PositiveIntegerField()),
                (
                    "building",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="revenue_snapshots",
                        to="properties.building",
                    ),
                ),
            ],
            options={
                "ordering": ["-snapshot_year", "-snapshot_month"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("building", "snapshot_month", "snapshot_year"),
                        name="uniq_revenue_snapshot_per_month",
                    )
                ],
            },
        ),
    ]
