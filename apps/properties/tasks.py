import logging
from decimal import Decimal

from apps.core.clock import Clock

logger = logging.getLogger(__name__)


def capture_occupancy_snapshots(snapshot_date=None):
    """
    Store today's occupancy figures for every active building.

    One row per building per day; running twice on the same day updates the
    existing row instead of adding another.
    """
    from apps.billing.store import DjangoRecordStore

    from .models import Building, OccupancySnapshot
    from .occupancy import aggregate

    today = snapshot_date or Clock().today()
    store = DjangoRecordStore()
    count = 0
    for building in Building.objects.filter(is_active=True):
        try:
            report = aggregate(building, store.list_units_with_tenancies(building.pk), today)
            OccupancySnapshot.objects.update_or_create(
                building=building,
                snapshot_date=today,
                defaults={
                    "total_units": report["total_units"],
                    "occupied_units": report["occupied"],
                    "upcoming_units": report["upcoming"],
                    "available_units": report["available"],
                    "maintenance_units": report["maintenance"],
                    "occupancy_rate": Decimal(str(report["occupancy_rate"])),
                    "utilization_rate": Decimal(str(report["utilization_rate"])),
                },
            )
            count += 1
        except Exception:
            logger.exception("Failed to capture occupancy snapshot for building %s", building.pk)

    logger.info("capture_occupancy_snapshots: %d snapshots stored for %s.", count, today)
    return count
