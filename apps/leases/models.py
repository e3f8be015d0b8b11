from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from apps.core.models import AuditMixin, TimeStampedModel, money_field


class Tenancy(TimeStampedModel, AuditMixin):
    PENDING = "pending"
    EXECUTED = "executed"
    EXPIRED = "expired"
    TERMINATED = "terminated"
    AGREEMENT_STATUS_CHOICES = [
        (PENDING, "Pending Signature"),
        (EXECUTED, "Executed"),
        (EXPIRED, "Expired"),
        (TERMINATED, "Terminated"),
    ]

    unit = models.ForeignKey(
        "properties.Unit", on_delete=models.PROTECT, related_name="tenancies"
    )
    tenant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="tenancies",
        limit_choices_to={"role": "tenant"},
    )
    start_date = models.DateField()
    end_date = models.DateField(
        null=True, blank=True, help_text="Required once the agreement is executed"
    )
    rent_amount = money_field()
    security_deposit = money_field(default=0)
    agreement_status = models.CharField(
        max_length=15, choices=AGREEMENT_STATUS_CHOICES, default=PENDING, db_index=True
    )
    executed_at = models.DateTimeField(null=True, blank=True)

    # Move-in/out
    move_in_date = models.DateField(null=True, blank=True)
    move_out_date = models.DateField(null=True, blank=True)
    notice_period_days = models.PositiveSmallIntegerField(default=30)
    termination_reason = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-start_date"]
        verbose_name_plural = "tenancies"
        indexes = [
            models.Index(fields=["unit", "start_date"], name="tenancy_unit_start_idx"),
            models.Index(fields=["start_date", "end_date"], name="tenancy_window_idx"),
        ]

    def __str__(self):
        return f"Tenancy: {self.tenant} @ {self.unit} ({self.agreement_status})"

    @property
    def is_executed(self):
        return self.agreement_status == self.EXECUTED

    @property
    def is_closed(self):
        return self.agreement_status in (self.EXPIRED, self.TERMINATED)

    def overlapping_tenancies(self):
        """Other executed tenancies on the same unit whose date window intersects this one."""
        qs = Tenancy.objects.filter(unit_id=self.unit_id, agreement_status=self.EXECUTED)
        if self.pk:
            qs = qs.exclude(pk=self.pk)
        qs = qs.filter(Q(end_date__isnull=True) | Q(end_date__gte=self.start_date))
        if self.end_date is not None:
            qs = qs.filter(start_date__lte=self.end_date)
        return qs

    def clean(self):
        super().clean()
        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "End date cannot be before the start date."})
        if self.rent_amount is not None and self.rent_amount < 0:
            raise ValidationError({"rent_amount": "Rent amount cannot be negative."})
        if self.agreement_status == self.EXECUTED:
            if self.end_date is None:
                raise ValidationError({"end_date": "An executed tenancy needs an end date."})
            if self.unit_id and self.overlapping_tenancies().exists():
                raise ValidationError(
                    "This unit already has an executed tenancy overlapping these dates."
                )
