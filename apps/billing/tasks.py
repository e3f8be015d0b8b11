"""
Django-Q2 async tasks for the billing app.

Registered as schedules by ``manage.py setup_billing_schedule``:
    from django_q.tasks import async_task
    async_task('apps.billing.tasks.generate_monthly_rent_cycles')
    async_task('apps.billing.tasks.mark_overdue_payments')
    async_task('apps.billing.tasks.capture_revenue_snapshots')
    async_task('apps.billing.tasks.cleanup_job_runs')
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from apps.core.clock import Clock, month_bounds

logger = logging.getLogger(__name__)


def generate_monthly_rent_cycles(target_month=None, target_year=None, trigger="scheduled"):
    """
    Create this month's rent payments and rent cycles.

    Called by the Django-Q2 cron schedule on the 1st of each month. Safe to
    call again for the same month; nothing is duplicated.

    Returns the run summary dict.
    """
    from .services import RentCycleGenerator

    return RentCycleGenerator(trigger=trigger).run(target_month, target_year)


def mark_overdue_payments():
    """Mark pending rent past its due date as overdue. Runs daily."""
    from .services import PaymentService

    today = Clock().today()
    counts = PaymentService.mark_overdue(today)
    logger.info(
        "mark_overdue_payments: %d payments and %d rent cycles marked as overdue.",
        counts["payments"], counts["rent_cycles"],
    )
    return counts


def capture_revenue_snapshots(month=None, year=None):
    """
    Store one revenue snapshot per active building for a month.

    Defaults to the current month. Re-running updates the existing rows.
    """
    from apps.properties.models import Building
    from apps.properties.occupancy import aggregate

    from .aging import collection_summary
    from .models import RevenueSnapshot
    from .store import DjangoRecordStore

    clock = Clock()
    if month is None or year is None:
        month, year = clock.current_period()
    start, end = month_bounds(month, year)
    store = DjangoRecordStore()
    today = clock.today()

    count = 0
    for building in Building.objects.filter(is_active=True):
        try:
            payments = [
                p for p in store.list_payments(building_id=building.pk, due_date_range=(start, end))
                if p.payment_type == "rent"
            ]
            collections = collection_summary(payments, month, year)
            occupancy = aggregate(building, store.list_units_with_tenancies(building.pk), today)
            average_rent = (
                occupancy["potential_revenue"] / occupancy["total_units"]
                if occupancy["total_units"] else Decimal("0.00")
            )
            RevenueSnapshot.objects.update_or_create(
                building=building,
                snapshot_month=month,
                snapshot_year=year,
                defaults={
                    "total_rent_due": collections["total_due"],
                    "total_rent_collected": collections["total_collected"],
                    "total_outstanding": collections["total_outstanding"],
                    "collection_rate": Decimal(str(collections["collection_rate"])),
                    "average_rent_per_unit": average_rent.quantize(Decimal("0.01")),
                    "total_active_units": occupancy["occupied"],
                },
            )
            count += 1
        except Exception:
            logger.exception("Failed to capture revenue snapshot for building %s", building.pk)

    logger.info("capture_revenue_snapshots: %d snapshots stored for %s/%s.", count, month, year)
    return count


def cleanup_job_runs(days=None):
    """Delete completed job runs older than the retention window. Failed runs are kept."""
    from .models import JobRun

    if days is None:
        days = settings.BILLING["JOB_LOG_RETENTION_DAYS"]
    cutoff = timezone.now() - timedelta(days=int(days))
    deleted, _ = JobRun.objects.filter(status="completed", started_at__lt=cutoff).delete()
    logger.info("cleanup_job_runs: %d job runs older than %d days deleted.", deleted, days)
    return deleted
