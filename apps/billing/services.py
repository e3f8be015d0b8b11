import logging
import time
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.clock import Clock, cycle_due_date, validate_period

from .exceptions import RunLevelFailure, TenancyBillingError
from .locks import DatabaseJobLock
from .store import DjangoRecordStore

logger = logging.getLogger(__name__)

RENT_JOB_NAME = "recurring_payments"


class RentCycleGenerator:
    """
    Monthly rent generation.

    For a target month, every tenancy covering the cycle's due date whose
    tenant is active and which has neither a rent cycle nor a rent payment
    for that month gets exactly one pending Payment and one RentCycle. Each
    tenancy is written in its own transaction; a failure is recorded and the
    batch moves on. Re-running a month creates nothing new.

    All triggers share one database lock. A call that finds the lock held
    returns a ``skipped`` summary and writes nothing. The lock is refreshed
    before each tenancy, so its TTL only has to outlast one tenancy; a run that
    finds the lock taken over stops like a requested stop.
    """

    def __init__(self, store=None, clock=None, lock=None, stop_event=None, trigger="scheduled"):
        self.store = store or DjangoRecordStore()
        self.clock = clock or Clock()
        self.lock = lock
        self.stop_event = stop_event
        self.trigger = trigger
        self.max_logged_errors = settings.BILLING["MAX_LOGGED_ERRORS"]

    def run(self, target_month=None, target_year=None):
        if target_month is None or target_year is None:
            current_month, current_year = self.clock.current_period()
            target_month = target_month or current_month
            target_year = target_year or current_year
        target_month, target_year = int(target_month), int(target_year)
        validate_period(target_month, target_year)
        due_date = cycle_due_date(target_month, target_year)

        lock = self.lock or DatabaseJobLock(RENT_JOB_NAME)
        try:
            acquired = lock.acquire()
        except Exception as exc:
            logger.exception("Could not acquire the %s lock", RENT_JOB_NAME)
            raise RunLevelFailure(f"Lock backend error: {exc}") from exc

        if not acquired:
            logger.info(
                "Rent generation for %s/%s skipped: another run holds the lock",
                target_month, target_year,
            )
            return self._summary(target_month, target_year, due_date, status="skipped")

        try:
            return self._run_locked(target_month, target_year, due_date, lock)
        finally:
            lock.release()

    def _summary(self, month, year, due_date, status="started"):
        return {
            "status": status,
            "month": month,
            "year": year,
            "due_date": due_date,
            "tenancies_processed": 0,
            "payments_created": 0,
            "rent_cycles_created": 0,
            "skipped": 0,
            "failed": 0,
            "errors": [],
            "stopped": False,
            "job_run_id": None,
        }

    def _run_locked(self, month, year, due_date, lock):
        started = time.monotonic()
        summary = self._summary(month, year, due_date)
        logger.info("Starting rent generation for %s/%s (due %s)", month, year, due_date)

        try:
            job_run = self.store.record_job_run(RENT_JOB_NAME, self.trigger, month, year)
        except Exception as exc:
            logger.exception("Could not record the job run for %s/%s", month, year)
            raise RunLevelFailure(f"Could not record job run: {exc}") from exc
        summary["job_run_id"] = job_run.pk

        try:
            tenancies = list(self.store.find_unbilled_tenancies(due_date, month, year))
        except Exception as exc:
            self._fail(job_run, summary, started, exc)

        logger.info("Found %d tenancies to bill for %s/%s", len(tenancies), month, year)

        for tenancy in tenancies:
            if self.stop_event is not None and self.stop_event.is_set():
                summary["stopped"] = True
                logger.warning(
                    "Stop requested; ending rent generation after %d tenancies",
                    summary["tenancies_processed"],
                )
                break
            if not lock.refresh():
                summary["stopped"] = True
                logger.warning(
                    "Lost the %s lock; ending rent generation after %d tenancies",
                    RENT_JOB_NAME, summary["tenancies_processed"],
                )
                break

            summary["tenancies_processed"] += 1
            try:
                created = self._bill_tenancy(tenancy, month, year, due_date)
            except TenancyBillingError as exc:
                logger.exception("Error creating rent for tenancy %s", tenancy.pk)
                summary["failed"] += 1
                summary["errors"].append({"tenancy_id": str(tenancy.pk), "message": str(exc)})
                continue

            if created:
                summary["payments_created"] += 1
                summary["rent_cycles_created"] += 1
            else:
                summary["skipped"] += 1

        summary["status"] = "completed"
        try:
            self.store.update_job_run(job_run, **self._job_run_fields(summary, started))
        except Exception as exc:
            self._fail(job_run, summary, started, exc)

        logger.info(
            "Rent generation for %s/%s: %d payments, %d rent cycles, %d skipped, %d errors",
            month, year,
            summary["payments_created"],
            summary["rent_cycles_created"],
            summary["skipped"],
            summary["failed"],
        )
        return summary

    def _bill_tenancy(self, tenancy, month, year, due_date):
        """Create the payment and rent cycle pair. Returns False when already billed."""
        try:
            with self.store.atomic():
                if not self.store.has_billing_gap(tenancy.pk, month, year):
                    return False
                unit_number = tenancy.unit.unit_number if tenancy.unit_id else ""
                payment = self.store.create_payment(
                    tenancy,
                    tenancy.rent_amount,
                    due_date,
                    notes=f"Monthly rent for {month}/{year} - Unit {unit_number}",
                )
                self.store.create_rent_cycle(
                    tenancy, payment, month, year, tenancy.rent_amount, due_date
                )
        except IntegrityError as exc:
            if self.store.has_billing_gap(tenancy.pk, month, year):
                raise TenancyBillingError(tenancy.pk, str(exc)) from exc
            logger.info(
                "Tenancy %s was billed for %s/%s by a concurrent writer", tenancy.pk, month, year
            )
            return False
        except Exception as exc:
            raise TenancyBillingError(tenancy.pk, str(exc)) from exc
        return True

    def _job_run_fields(self, summary, started):
        messages = [
            f"{e['tenancy_id']}: {e['message']}" for e in summary["errors"][: self.max_logged_errors]
        ]
        return {
            "status": summary["status"],
            "finished_at": timezone.now(),
            "duration_ms": int((time.monotonic() - started) * 1000),
            "tenancies_processed": summary["tenancies_processed"],
            "payments_created": summary["payments_created"],
            "rent_cycles_created": summary["rent_cycles_created"],
            "skipped_count": summary["skipped"],
            "failed_count": summary["failed"],
            "details": {
                "due_date": summary["due_date"].isoformat(),
                "stopped": summary["stopped"],
                "message": (
                    f"Created {summary['payments_created']} payments and "
                    f"{summary['rent_cycles_created']} rent cycles for "
                    f"{summary['month']}/{summary['year']}"
                ),
            },
            "error_message": "\n".join(messages),
        }

    def _fail(self, job_run, summary, started, exc):
        logger.exception("Rent generation for %s/%s failed", summary["month"], summary["year"])
        summary["status"] = "failed"
        fields = self._job_run_fields(summary, started)
        fields["error_message"] = "\n".join(filter(None, [str(exc), fields["error_message"]]))
        try:
            self.store.update_job_run(job_run, **fields)
        except Exception:
            logger.exception("Could not mark job run %s as failed", job_run.pk)
        raise RunLevelFailure(str(exc), job_run_id=job_run.pk) from exc


class PaymentService:
    """Recording payments against generated rent."""

    @staticmethod
    def record_payment(payment, amount=None, method="", payment_date=None, transaction_id="", notes=""):
        """
        Record money received against a payment.

        A full amount (or no amount) marks the payment paid; less than the
        amount marks it partial. The companion rent cycle is updated in the
        same transaction.
        """
        from .models import Payment, RentCycle

        with transaction.atomic():
            locked = Payment.objects.select_for_update().get(pk=payment.pk)
            if locked.status == "paid":
                raise ValidationError("This payment has already been paid.")

            received = locked.amount if amount is None else Decimal(str(amount))
            if received <= 0:
                raise ValidationError("Payment amount must be positive.")

            locked.status = "paid" if received >= locked.amount else "partial"
            locked.payment_date = payment_date or timezone.localdate()
            locked.payment_method = method
            locked.transaction_id = transaction_id
            if notes:
                locked.notes = f"{locked.notes}\n{notes}".strip()
            locked.save(update_fields=[
                "status", "payment_date", "payment_method",
                "transaction_id", "notes", "updated_at",
            ])

            cycle = RentCycle.objects.select_for_update().filter(payment=locked).first()
            if cycle is not None:
                cycle.paid_amount = min(received, cycle.rent_amount + cycle.late_fee)
                cycle.payment_status = locked.status
                cycle.payment_date = locked.payment_date
                cycle.save(update_fields=["paid_amount", "payment_status", "payment_date", "updated_at"])

        payment.status = locked.status
        payment.payment_date = locked.payment_date
        logger.info("Recorded %s payment %s (%s)", locked.status, locked.pk, received)
        return payment

    @staticmethod
    def mark_overdue(today):
        """Flag pending payments and rent cycles whose due date has passed."""
        from .models import Payment, RentCycle

        now = timezone.now()
        with transaction.atomic():
            payments = Payment.objects.filter(status="pending", due_date__lt=today).update(
                status="overdue", updated_at=now
            )
            cycles = RentCycle.objects.filter(payment_status="pending", due_date__lt=today).update(
                payment_status="overdue", updated_at=now
            )
        return {"payments": payments, "rent_cycles": cycles}
