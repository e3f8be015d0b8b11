from decimal import Decimal

from django.db import models

from apps.core.models import TimeStampedModel, money_field, rate_field


class Payment(TimeStampedModel):
    TYPE_CHOICES = [
        ("rent", "Rent"),
        ("security_deposit", "Security Deposit"),
        ("maintenance", "Maintenance"),
        ("utility", "Utility"),
        ("late_fee", "Late Fee"),
        ("other", "Other"),
    ]
    METHOD_CHOICES = [
        ("cash", "Cash"),
        ("bank_transfer", "Bank Transfer"),
        ("upi", "UPI"),
        ("card", "Card"),
        ("cheque", "Cheque"),
    ]
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("partial", "Partially Paid"),
        ("paid", "Paid"),
        ("overdue", "Overdue"),
        ("failed", "Failed"),
    ]
    UNPAID_STATUSES = ("pending", "partial", "overdue", "failed")

    tenancy = models.ForeignKey(
        "leases.Tenancy", on_delete=models.PROTECT, related_name="payments"
    )
    payment_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default="rent", db_index=True)
    amount = money_field()
    due_date = models.DateField(db_index=True)
    payment_date = models.DateField(null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, blank=True, default="")
    transaction_id = models.CharField(max_length=100, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="pending", db_index=True)
    late_fee = money_field(default=0)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-due_date", "-created_at"]
        indexes = [
            models.Index(fields=["tenancy", "payment_type", "due_date"], name="payment_tenancy_due_idx"),
        ]

    def __str__(self):
        return f"{self.get_payment_type_display()} {self.amount} due {self.due_date} ({self.status})"

    @property
    def is_paid(self):
        return self.status == "paid"


class RentCycle(TimeStampedModel):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("overdue", "Overdue"),
        ("partial", "Partially Paid"),
    ]

    tenancy = models.ForeignKey(
        "leases.Tenancy", on_delete=models.PROTECT, related_name="rent_cycles"
    )
    payment = models.OneToOneField(
        Payment, on_delete=models.SET_NULL, null=True, blank=True, related_name="rent_cycle"
    )
    cycle_month = models.PositiveSmallIntegerField()
    cycle_year = models.PositiveSmallIntegerField()
    rent_amount = money_field()
    due_date = models.DateField()
    payment_status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="pending", db_index=True)
    paid_amount = money_field(default=0)
    payment_date = models.DateField(null=True, blank=True)
    late_fee = money_field(default=0)

    class Meta:
        ordering = ["-cycle_year", "-cycle_month"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenancy", "cycle_month", "cycle_year"], name="uniq_rent_cycle_per_tenancy_period"
            ),
        ]

    def __str__(self):
        return f"{self.cycle_year}-{self.cycle_month:02d} rent for {self.tenancy_id} ({self.payment_status})"

    @property
    def balance_due(self):
        return max(self.rent_amount + self.late_fee - self.paid_amount, Decimal("0.00"))


class JobRun(TimeStampedModel):
    STATUS_CHOICES = [
        ("started", "Started"),
        ("completed", "Completed"),
        ("failed", "Failed"),
    ]
    TRIGGER_CHOICES = [
        ("scheduled", "Scheduled"),
        ("manual", "Manual"),
    ]

    job_name = models.CharField(max_length=100, db_index=True)
    trigger = models.CharField(max_length=10, choices=TRIGGER_CHOICES, default="scheduled")
    cycle_month = models.PositiveSmallIntegerField(null=True, blank=True)
    cycle_year = models.PositiveSmallIntegerField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="started", db_index=True)
    started_at = models.DateTimeField()
    finished_at = models.DateTimeField(null=True, blank=True)
    duration_ms = models.PositiveIntegerField(null=True, blank=True)
    tenancies_processed = models.PositiveIntegerField(default=0)
    payments_created = models.PositiveIntegerField(default=0)
    rent_cycles_created = models.PositiveIntegerField(default=0)
    skipped_count = models.PositiveIntegerField(default=0)
    failed_count = models.PositiveIntegerField(default=0)
    details = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-started_at"]

    def __str__(self):
        return f"{self.job_name} @ {self.started_at:%Y-%m-%d %H:%M} ({self.status})"


class JobLock(TimeStampedModel):
    """Database row used as a cross-process mutual exclusion flag for one job."""

    name = models.CharField(max_length=100, unique=True)
    is_locked = models.BooleanField(default=False)
    owner = models.CharField(max_length=64, blank=True, default="")
    acquired_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        state = f"held by {self.owner}" if self.is_locked else "free"
        return f"{self.name} ({state})"


class RevenueSnapshot(TimeStampedModel):
    building = models.ForeignKey(
        "properties.Building", on_delete=models.CASCADE, related_name="revenue_snapshots"
    )
    snapshot_month = models.PositiveSmallIntegerField()
    snapshot_year = models.PositiveSmallIntegerField()
    total_rent_due = money_field(max_digits=12)
    total_rent_collected = money_field(max_digits=12)
    total_outstanding = money_field(max_digits=12)
    collection_rate = rate_field()
    average_rent_per_unit = money_field()
    total_active_units = models.PositiveIntegerField()

    class Meta:
        ordering = ["-snapshot_year", "-snapshot_month"]
        constraints = [
            models.UniqueConstraint(
                fields=["building", "snapshot_month", "snapshot_year"],
                name="uniq_revenue_snapshot_per_month",
            ),
        ]

    def __str__(self):
        return f"{self.building} {self.snapshot_year}-{self.snapshot_month:02d}: {self.collection_rate}%"
