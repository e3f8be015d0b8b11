from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.billing import tasks
from apps.billing.models import JobRun, RevenueSnapshot
from apps.core.clock import FixedClock
from apps.leases.models import Tenancy
from apps.leases.tasks import expire_ended_tenancies
from apps.properties.models import OccupancySnapshot, Unit
from apps.properties.tasks import capture_occupancy_snapshots

pytestmark = pytest.mark.django_db


@pytest.fixture
def frozen(monkeypatch):
    clock = FixedClock(date(2024, 5, 20))
    for module in ("apps.billing.tasks", "apps.leases.tasks", "apps.properties.tasks"):
        monkeypatch.setattr(f"{module}.Clock", lambda: clock)
    return clock


def test_generate_monthly_rent_cycles_runs_the_generator(make_tenancy):
    make_tenancy()
    summary = tasks.generate_monthly_rent_cycles(5, 2024, trigger="manual")
    assert summary["payments_created"] == 1
    assert JobRun.objects.get().trigger == "manual"


def test_mark_overdue_payments(frozen, make_payment):
    make_payment(due_date=date(2024, 5, 1))
    assert tasks.mark_overdue_payments() == {"payments": 1, "rent_cycles": 0}


def test_expire_ended_tenancies(frozen, make_tenancy):
    make_tenancy(start_date=date(2023, 1, 1), end_date=date(2023, 12, 31))
    assert expire_ended_tenancies() == 1
    assert Tenancy.objects.get().agreement_status == Tenancy.EXPIRED


def test_occupancy_snapshot_is_one_row_per_day(frozen, building, make_unit, make_tenancy):
    make_tenancy(unit=make_unit())
    make_unit()
    make_unit(status=Unit.MAINTENANCE)

    assert capture_occupancy_snapshots() == 1
    assert capture_occupancy_snapshots() == 1

    snapshot = OccupancySnapshot.objects.get()
    assert snapshot.snapshot_date == date(2024, 5, 20)
    assert (snapshot.total_units, snapshot.occupied_units, snapshot.maintenance_units) == (3, 1, 1)
    assert snapshot.occupancy_rate == Decimal("33.33")


def test_revenue_snapshot(frozen, building, make_unit, make_tenancy, make_payment):
    paid_tenancy = make_tenancy(unit=make_unit())
    open_tenancy = make_tenancy(unit=make_unit())
    make_payment(tenancy=paid_tenancy, status="paid")
    make_payment(tenancy=open_tenancy, amount=Decimal("5000.00"))

    assert tasks.capture_revenue_snapshots() == 1
    assert tasks.capture_revenue_snapshots() == 1

    snapshot = RevenueSnapshot.objects.get()
    assert (snapshot.snapshot_month, snapshot.snapshot_year) == (5, 2024)
    assert snapshot.total_rent_due == Decimal("20000.00")
    assert snapshot.total_rent_collected == Decimal("15000.00")
    assert snapshot.total_outstanding == Decimal("5000.00")
    assert snapshot.collection_rate == Decimal("75.00")
    assert snapshot.total_active_units == 2


def test_cleanup_keeps_recent_and_failed_runs():
    old = timezone.now() - timedelta(days=120)
    JobRun.objects.create(job_name="recurring_payments", status="completed", started_at=old)
    JobRun.objects.create(job_name="recurring_payments", status="failed", started_at=old)
    JobRun.objects.create(job_name="recurring_payments", status="completed", started_at=timezone.now())

    assert tasks.cleanup_job_runs(days=90) == 1
    assert JobRun.objects.count() == 2


def test_inline_cluster_keeps_retry_longer_than_timeout(settings):
    cluster = settings.Q_CLUSTER
    assert cluster["sync"] is True
    assert cluster["retry"] > cluster["timeout"]
