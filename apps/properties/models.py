from django.db import models

from apps.core.models import TimeStampedModel, money_field, rate_field


class Building(TimeStampedModel):
    name = models.CharField(max_length=200)
    address_line1 = models.CharField(max_length=255, blank=True, default="")
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    state = models.CharField(max_length=50, blank=True, default="")
    zip_code = models.CharField(max_length=20, blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)
    description = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def full_address(self):
        parts = [p for p in (self.address_line1, self.address_line2) if p]
        locality = " ".join(p for p in (self.state, self.zip_code) if p)
        if self.city or locality:
            parts.append(", ".join(p for p in (self.city, locality) if p))
        return ", ".join(parts)


class Unit(TimeStampedModel):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"
    STATUS_CHOICES = [
        (AVAILABLE, "Available"),
        (OCCUPIED, "Occupied"),
        (MAINTENANCE, "Under Maintenance"),
        (RESERVED, "Reserved"),
    ]

    building = models.ForeignKey(Building, on_delete=models.CASCADE, related_name="units")
    unit_number = models.CharField(max_length=30)
    floor = models.SmallIntegerField(null=True, blank=True)
    rent_amount = money_field()
    security_deposit = money_field(default=0)
    status = models.CharField(max_length=15, choices=STATUS_CHOICES, default=AVAILABLE, db_index=True)
    description = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["building", "unit_number"]
        unique_together = [("building", "unit_number")]

    def __str__(self):
        return f"{self.building.name} - Unit {self.unit_number}"

    @property
    def is_under_maintenance(self):
        return self.status == self.MAINTENANCE


class OccupancySnapshot(TimeStampedModel):
    """Daily occupancy figures per building, captured by a scheduled task."""

    building = models.ForeignKey(Building, on_delete=models.CASCADE, related_name="occupancy_snapshots")
    snapshot_date = models.DateField()
    total_units = models.PositiveIntegerField()
    occupied_units = models.PositiveIntegerField()
    upcoming_units = models.PositiveIntegerField(default=0)
    available_units = models.PositiveIntegerField()
    maintenance_units = models.PositiveIntegerField()
    occupancy_rate = rate_field()
    utilization_rate = rate_field(default=0)

    class Meta:
        ordering = ["-snapshot_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["building", "snapshot_date"], name="uniq_occupancy_snapshot_per_day"
            ),
        ]

    def __str__(self):
        return f"{self.building} @ {self.snapshot_date}: {self.occupancy_rate}%"
