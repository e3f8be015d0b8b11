import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.db import DatabaseError
from django.utils import timezone

from apps.billing.exceptions import RunLevelFailure
from apps.billing.locks import DatabaseJobLock, lock_status
from apps.billing.models import JobLock, JobRun, Payment, RentCycle
from apps.billing.services import RENT_JOB_NAME, RentCycleGenerator
from apps.billing.store import DjangoRecordStore

pytestmark = pytest.mark.django_db


def run(clock, store=None, **kwargs):
    return RentCycleGenerator(store=store, clock=clock, **kwargs).run(5, 2024)


def test_forty_active_tenancies_get_one_cycle_each(clock, make_tenancy):
    tenancies = [make_tenancy() for _ in range(40)]

    summary = run(clock)

    assert summary["status"] == "completed"
    assert summary["payments_created"] == 40
    assert summary["rent_cycles_created"] == 40
    assert summary["failed"] == 0
    assert RentCycle.objects.count() == 40
    assert Payment.objects.filter(payment_type="rent", status="pending").count() == 40

    cycle = RentCycle.objects.get(tenancy=tenancies[0])
    assert (cycle.cycle_month, cycle.cycle_year) == (5, 2024)
    assert cycle.due_date == date(2024, 5, 1)
    assert cycle.rent_amount == Decimal("15000.00")
    assert cycle.payment.amount == cycle.rent_amount
    assert cycle.payment.due_date == cycle.due_date
    assert cycle.payment.notes.startswith("Monthly rent for 5/2024 - Unit ")


def test_rerunning_a_month_creates_nothing(clock, make_tenancy):
    for _ in range(3):
        make_tenancy()
    run(clock)

    summary = run(clock)

    assert summary["payments_created"] == 0
    assert summary["tenancies_processed"] == 0
    assert RentCycle.objects.count() == 3
    assert Payment.objects.count() == 3


def test_eligibility(clock, make_tenancy, make_tenant):
    included = make_tenancy()
    open_ended = make_tenancy(end_date=None)
    make_tenancy(tenant=make_tenant(is_active=False))
    make_tenancy(end_date=date(2024, 4, 30))
    make_tenancy(start_date=date(2024, 5, 2))

    summary = run(clock)

    billed = set(RentCycle.objects.values_list("tenancy_id", flat=True))
    assert billed == {included.pk, open_ended.pk}
    assert summary["payments_created"] == 2


def test_existing_rent_payment_or_cycle_blocks_billing(clock, make_tenancy, make_payment):
    paid_by_hand = make_tenancy()
    make_payment(tenancy=paid_by_hand, due_date=date(2024, 5, 15))
    has_cycle = make_tenancy()
    RentCycle.objects.create(
        tenancy=has_cycle, cycle_month=5, cycle_year=2024,
        rent_amount=Decimal("15000.00"), due_date=date(2024, 5, 1),
    )
    deposit_only = make_tenancy()
    make_payment(tenancy=deposit_only, payment_type="security_deposit")

    run(clock)

    assert list(RentCycle.objects.filter(payment__isnull=False).values_list("tenancy_id", flat=True)) == [
        deposit_only.pk
    ]
    assert Payment.objects.filter(tenancy=paid_by_hand).count() == 1


def test_job_run_records_the_outcome(clock, make_tenancy):
    make_tenancy()
    make_tenancy()

    summary = run(clock, trigger="manual")

    job_run = JobRun.objects.get(pk=summary["job_run_id"])
    assert job_run.job_name == RENT_JOB_NAME
    assert job_run.trigger == "manual"
    assert job_run.status == "completed"
    assert (job_run.cycle_month, job_run.cycle_year) == (5, 2024)
    assert job_run.payments_created == 2
    assert job_run.rent_cycles_created == 2
    assert job_run.failed_count == 0
    assert job_run.finished_at is not None
    assert job_run.details["due_date"] == "2024-05-01"


class FailingStore(DjangoRecordStore):
    def __init__(self, fail_for):
        self.fail_for = fail_for

    def create_payment(self, tenancy, amount, due_date, notes=""):
        if tenancy.pk == self.fail_for:
            raise DatabaseError("disk full")
        return super().create_payment(tenancy, amount, due_date, notes)


def test_one_failing_tenancy_does_not_stop_the_batch(clock, make_tenancy):
    tenancies = [make_tenancy() for _ in range(3)]
    bad = tenancies[1]

    summary = run(clock, store=FailingStore(bad.pk))

    assert summary["status"] == "completed"
    assert summary["payments_created"] == 2
    assert summary["failed"] == 1
    assert summary["errors"][0]["tenancy_id"] == str(bad.pk)
    assert "disk full" in summary["errors"][0]["message"]
    assert not RentCycle.objects.filter(tenancy=bad).exists()
    assert not Payment.objects.filter(tenancy=bad).exists()

    job_run = JobRun.objects.get(pk=summary["job_run_id"])
    assert job_run.failed_count == 1
    assert str(bad.pk) in job_run.error_message


def test_failed_tenancy_is_billed_on_the_next_run(clock, make_tenancy):
    bad = make_tenancy()
    run(clock, store=FailingStore(bad.pk))

    summary = run(clock)

    assert summary["payments_created"] == 1
    assert RentCycle.objects.filter(tenancy=bad).count() == 1


class StaleGapStore(DjangoRecordStore):
    """Reports a gap the first time it is asked, as if another writer got in between."""

    def __init__(self):
        self.asked = set()

    def find_unbilled_tenancies(self, on_date, month, year):
        return self.find_active_tenancies(on_date)

    def has_billing_gap(self, tenancy_id, month, year):
        if tenancy_id not in self.asked:
            self.asked.add(tenancy_id)
            return True
        return super().has_billing_gap(tenancy_id, month, year)


def test_losing_a_race_to_another_writer_counts_as_skipped(clock, make_tenancy):
    tenancy = make_tenancy()
    RentCycle.objects.create(
        tenancy=tenancy, cycle_month=5, cycle_year=2024,
        rent_amount=Decimal("15000.00"), due_date=date(2024, 5, 1),
    )

    summary = run(clock, store=StaleGapStore())

    assert summary["skipped"] == 1
    assert summary["failed"] == 0
    assert RentCycle.objects.filter(tenancy=tenancy).count() == 1
    assert not Payment.objects.filter(tenancy=tenancy).exists()


class StopAfterFirstStore(DjangoRecordStore):
    def __init__(self, stop_event):
        self.stop_event = stop_event

    def create_rent_cycle(self, *args, **kwargs):
        cycle = super().create_rent_cycle(*args, **kwargs)
        self.stop_event.set()
        return cycle


def test_stop_request_ends_the_run_between_tenancies(clock, make_tenancy):
    for _ in range(3):
        make_tenancy()
    stop = threading.Event()

    summary = run(clock, store=StopAfterFirstStore(stop), stop_event=stop)

    assert summary["stopped"] is True
    assert summary["tenancies_processed"] == 1
    assert RentCycle.objects.count() == 1
    assert JobRun.objects.get(pk=summary["job_run_id"]).details["stopped"] is True


def test_held_lock_skips_the_run_without_writing(clock, make_tenancy):
    make_tenancy()
    other = DatabaseJobLock(RENT_JOB_NAME, owner="other-worker")
    assert other.acquire()

    summary = run(clock)

    assert summary["status"] == "skipped"
    assert summary["job_run_id"] is None
    assert not JobRun.objects.exists()
    assert not RentCycle.objects.exists()
    assert lock_status(RENT_JOB_NAME)["owner"] == "other-worker"


def test_lock_is_released_after_a_run(clock, make_tenancy):
    make_tenancy()
    run(clock)
    assert lock_status(RENT_JOB_NAME)["is_running"] is False


class BrokenLock:
    def acquire(self):
        raise DatabaseError("connection refused")

    def release(self):
        pass


def test_lock_backend_error_is_a_run_level_failure(clock, make_tenancy):
    make_tenancy()
    with pytest.raises(RunLevelFailure):
        run(clock, lock=BrokenLock())
    assert not JobRun.objects.exists()


class BrokenQueryStore(DjangoRecordStore):
    def find_unbilled_tenancies(self, on_date, month, year):
        raise DatabaseError("relation does not exist")


def test_query_failure_marks_the_job_run_failed(clock, make_tenancy):
    make_tenancy()

    with pytest.raises(RunLevelFailure) as excinfo:
        run(clock, store=BrokenQueryStore())

    job_run = JobRun.objects.get(pk=excinfo.value.job_run_id)
    assert job_run.status == "failed"
    assert "relation does not exist" in job_run.error_message
    assert lock_status(RENT_JOB_NAME)["is_running"] is False


def test_due_day_past_28_is_capped(clock, make_tenancy, settings):
    settings.BILLING = {**settings.BILLING, "RENT_DUE_DAY": 31}
    make_tenancy(start_date=date(2023, 1, 1), end_date=date(2023, 12, 31))

    summary = RentCycleGenerator(clock=clock).run(2, 2023)

    assert summary["due_date"] == date(2023, 2, 28)
    assert RentCycle.objects.get().due_date == date(2023, 2, 28)


def test_defaults_to_the_clock_period(clock, make_tenancy):
    make_tenancy()
    summary = RentCycleGenerator(clock=clock).run()
    assert (summary["month"], summary["year"]) == (5, 2024)


def test_invalid_month_is_rejected(clock):
    with pytest.raises(ValueError):
        RentCycleGenerator(clock=clock).run(13, 2024)
    assert not JobRun.objects.exists()


class TakeoverStore(DjangoRecordStore):
    """Another worker claims the lock while the first tenancy is written."""

    def create_rent_cycle(self, *args, **kwargs):
        JobLock.objects.filter(name=RENT_JOB_NAME).update(owner="other-worker")
        return super().create_rent_cycle(*args, **kwargs)


def test_run_stops_when_the_lock_is_taken_over(clock, make_tenancy):
    for _ in range(3):
        make_tenancy()

    summary = run(clock, store=TakeoverStore())

    assert summary["stopped"] is True
    assert summary["tenancies_processed"] == 1
    assert RentCycle.objects.count() == 1
    assert lock_status(RENT_JOB_NAME)["owner"] == "other-worker"


def test_lock_expiry_is_pushed_out_while_running(clock, make_tenancy, settings):
    settings.BILLING = {**settings.BILLING, "LOCK_TTL_SECONDS": 600}
    seen = []

    class NearlyExpiredStore(DjangoRecordStore):
        def create_payment(self, *args, **kwargs):
            lock = JobLock.objects.filter(name=RENT_JOB_NAME)
            seen.append(lock.get().expires_at)
            lock.update(expires_at=timezone.now() + timedelta(seconds=1))
            return super().create_payment(*args, **kwargs)

    make_tenancy()
    make_tenancy()
    run(clock, store=NearlyExpiredStore())

    assert len(seen) == 2
    assert seen[1] > timezone.now() + timedelta(seconds=300)
