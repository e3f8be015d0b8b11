"""
Record store used by the rent generator and the reporting views.

``RecordStore`` is the contract; ``DjangoRecordStore`` implements it on the
ORM. The generator only ever talks to the store, so tests can exercise it
against the real models or substitute a store that fails on demand.
"""

import abc

from django.db import transaction
from django.db.models import Exists, OuterRef, Prefetch, Q
from django.utils import timezone


class RecordStore(abc.ABC):
    @abc.abstractmethod
    def find_active_tenancies(self, on_date):
        """Tenancies covering ``on_date`` whose tenant account is active."""

    @abc.abstractmethod
    def find_unbilled_tenancies(self, on_date, month, year):
        """Active tenancies with neither a rent cycle nor a rent payment for the period."""

    @abc.abstractmethod
    def has_billing_gap(self, tenancy_id, month, year):
        """True when the tenancy has no rent cycle and no rent payment for the period."""

    @abc.abstractmethod
    def create_payment(self, tenancy, amount, due_date, notes=""):
        pass

    @abc.abstractmethod
    def create_rent_cycle(self, tenancy, payment, month, year, amount, due_date):
        pass

    @abc.abstractmethod
    def atomic(self):
        """Context manager wrapping one unit of work."""

    @abc.abstractmethod
    def record_job_run(self, job_name, trigger, month=None, year=None):
        pass

    @abc.abstractmethod
    def update_job_run(self, job_run, **fields):
        pass

    @abc.abstractmethod
    def list_payments(self, building_id=None, due_date_range=None, status=None):
        pass

    @abc.abstractmethod
    def list_units_with_tenancies(self, building_id):
        pass


class DjangoRecordStore(RecordStore):
    def find_active_tenancies(self, on_date):
        from apps.leases.models import Tenancy

        return (
            Tenancy.objects.filter(start_date__lte=on_date, tenant__is_active=True)
            .filter(Q(end_date__isnull=True) | Q(end_date__gte=on_date))
            .select_related("tenant", "unit")
        )

    def _cycle_exists(self, month, year):
        from .models import RentCycle

        return RentCycle.objects.filter(
            tenancy=OuterRef("pk"), cycle_month=month, cycle_year=year
        )

    def _rent_payment_exists(self, month, year):
        from .models import Payment

        return Payment.objects.filter(
            tenancy=OuterRef("pk"),
            payment_type="rent",
            due_date__month=month,
            due_date__year=year,
        )

    def find_unbilled_tenancies(self, on_date, month, year):
        return (
            self.find_active_tenancies(on_date)
            .filter(~Exists(self._cycle_exists(month, year)))
            .filter(~Exists(self._rent_payment_exists(month, year)))
            .order_by("start_date", "pk")
        )

    def has_billing_gap(self, tenancy_id, month, year):
        from .models import Payment, RentCycle

        if RentCycle.objects.filter(
            tenancy_id=tenancy_id, cycle_month=month, cycle_year=year
        ).exists():
            return False
        return not Payment.objects.filter(
            tenancy_id=tenancy_id,
            payment_type="rent",
            due_date__month=month,
            due_date__year=year,
        ).exists()

    def create_payment(self, tenancy, amount, due_date, notes=""):
        from .models import Payment

        return Payment.objects.create(
            tenancy=tenancy,
            payment_type="rent",
            amount=amount,
            due_date=due_date,
            status="pending",
            notes=notes,
        )

    def create_rent_cycle(self, tenancy, payment, month, year, amount, due_date):
        from .models import RentCycle

        return RentCycle.objects.create(
            tenancy=tenancy,
            payment=payment,
            cycle_month=month,
            cycle_year=year,
            rent_amount=amount,
            due_date=due_date,
            payment_status="pending",
        )

    def atomic(self):
        return transaction.atomic()

    def record_job_run(self, job_name, trigger, month=None, year=None):
        from .models import JobRun

        return JobRun.objects.create(
            job_name=job_name,
            trigger=trigger,
            cycle_month=month,
            cycle_year=year,
            status="started",
            started_at=timezone.now(),
        )

    def update_job_run(self, job_run, **fields):
        for name, value in fields.items():
            setattr(job_run, name, value)
        job_run.save(update_fields=[*fields, "updated_at"])
        return job_run

    def list_payments(self, building_id=None, due_date_range=None, status=None):
        from .models import Payment

        qs = Payment.objects.select_related("tenancy__unit__building", "tenancy__tenant")
        if building_id:
            qs = qs.filter(tenancy__unit__building_id=building_id)
        if due_date_range:
            start, end = due_date_range
            qs = qs.filter(due_date__gte=start, due_date__lte=end)
        if status:
            if isinstance(status, (list, tuple, set)):
                qs = qs.filter(status__in=status)
            else:
                qs = qs.filter(status=status)
        return qs.order_by("due_date")

    def list_units_with_tenancies(self, building_id):
        from apps.leases.models import Tenancy
        from apps.properties.models import Unit

        units = (
            Unit.objects.filter(building_id=building_id)
            .prefetch_related(
                Prefetch(
                    "tenancies",
                    queryset=Tenancy.objects.select_related("tenant").order_by("start_date"),
                )
            )
            .order_by("floor", "unit_number")
        )
        return [(unit, list(unit.tenancies.all())) for unit in units]
