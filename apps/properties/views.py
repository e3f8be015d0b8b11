from datetime import timedelta

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from apps.billing.aging import collection_summary
from apps.billing.store import DjangoRecordStore
from apps.core.clock import Clock, month_bounds
from apps.core.decorators import admin_required

from .models import Building
from .occupancy import aggregate, vacancy_chart


def _horizon(request):
    try:
        days = int(request.GET.get("range", settings.BILLING["UPCOMING_HORIZON_DAYS"]))
    except ValueError:
        days = settings.BILLING["UPCOMING_HORIZON_DAYS"]
    return min(max(days, 1), 365)


def _building_report(building, request):
    store = DjangoRecordStore()
    clock = Clock()
    return aggregate(
        building, store.list_units_with_tenancies(building.pk), clock.today(), _horizon(request)
    ), store, clock


@admin_required
@require_GET
def building_overview(request, pk):
    """Occupancy, revenue and this month's collections for one building."""
    building = get_object_or_404(Building, pk=pk)
    report, store, clock = _building_report(building, request)
    report.pop("units")

    month, year = clock.current_period()
    start, end = month_bounds(month, year)
    payments = [
        p for p in store.list_payments(building_id=building.pk, due_date_range=(start, end))
        if p.payment_type == "rent"
    ]
    return JsonResponse({
        "success": True,
        "data": {
            "building": {
                "id": str(building.pk),
                "name": building.name,
                "address": building.full_address,
                "is_active": building.is_active,
            },
            "stats": report,
            "revenue": collection_summary(payments, month, year),
        },
    })


@admin_required
@require_GET
def building_vacancy_chart(request, pk):
    """Per-unit occupancy with vacancy ages, longest-vacant units first."""
    building = get_object_or_404(Building, pk=pk)
    report, _, _ = _building_report(building, request)
    summary_keys = (
        "total_units", "occupied", "upcoming", "maintenance", "available",
        "occupancy_rate", "utilization_rate", "potential_revenue", "current_revenue",
        "upcoming_revenue", "revenue_utilization", "long_term_vacant",
        "average_vacancy_days", "longest_vacant_unit",
    )
    return JsonResponse({
        "success": True,
        "data": {
            "summary": {key: report[key] for key in summary_keys},
            "units": report["units"],
            "vacant_units": vacancy_chart(report),
            "by_floor": report["by_floor"],
            "upcoming_changes": report["upcoming_changes"],
            "filters": {"range": report["horizon_days"]},
        },
    })


@admin_required
@require_GET
def building_occupancy_history(request, pk):
    """Stored daily occupancy snapshots for the last ``days`` days (default 30)."""
    building = get_object_or_404(Building, pk=pk)
    try:
        days = min(max(int(request.GET.get("days", 30)), 1), 366)
    except ValueError:
        days = 30
    since = Clock().today() - timedelta(days=days)
    snapshots = building.occupancy_snapshots.filter(snapshot_date__gte=since).order_by("snapshot_date")
    return JsonResponse({
        "success": True,
        "data": [
            {
                "date": s.snapshot_date,
                "total_units": s.total_units,
                "occupied_units": s.occupied_units,
                "upcoming_units": s.upcoming_units,
                "available_units": s.available_units,
                "maintenance_units": s.maintenance_units,
                "occupancy_rate": s.occupancy_rate,
                "utilization_rate": s.utilization_rate,
            }
            for s in snapshots
        ],
    })
