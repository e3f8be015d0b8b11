from django.contrib import admin

from .models import Building, OccupancySnapshot, Unit


class UnitInline(admin.TabularInline):
    model = Unit
    extra = 0
    fields = ["unit_number", "floor", "rent_amount", "security_deposit", "status"]


@admin.register(Building)
class BuildingAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "state", "is_active")
    list_filter = ("state", "is_active")
    search_fields = ("name", "address_line1", "city")
    inlines = [UnitInline]


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("__str__", "floor", "rent_amount", "status")
    list_filter = ("status", "building")
    search_fields = ("unit_number", "building__name")


@admin.register(OccupancySnapshot)
class OccupancySnapshotAdmin(admin.ModelAdmin):
    list_display = (
        "building", "snapshot_date", "total_units",
        "occupied_units", "occupancy_rate", "utilization_rate",
    )
    list_filter = ("building",)
    date_hierarchy = "snapshot_date"
