import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


class TenancyService:
    """Agreement status transitions for tenancies."""

    @staticmethod
    def execute(tenancy, executed_by=None):
        """
        Mark a pending tenancy as executed.

        The unit row is locked for the duration so two executions on the same
        unit cannot both pass the overlap check. Raises ValidationError when
        the tenancy is not pending, has no end date, or overlaps another
        executed tenancy on the unit.
        """
        from apps.properties.models import Unit

        from .models import Tenancy

        with transaction.atomic():
            Unit.objects.select_for_update().get(pk=tenancy.unit_id)
            locked = Tenancy.objects.select_for_update().get(pk=tenancy.pk)
            if locked.agreement_status != Tenancy.PENDING:
                raise ValidationError(
                    f"Only pending tenancies can be executed (status is {locked.agreement_status})."
                )

            locked.agreement_status = Tenancy.EXECUTED
            locked.executed_at = timezone.now()
            locked.updated_by = executed_by
            locked.full_clean()
            locked.save(update_fields=["agreement_status", "executed_at", "updated_by", "updated_at"])

        tenancy.agreement_status = locked.agreement_status
        tenancy.executed_at = locked.executed_at
        logger.info("Executed tenancy %s on unit %s", tenancy.pk, tenancy.unit_id)
        return tenancy

    @staticmethod
    def terminate(tenancy, termination_date=None, reason="", terminated_by=None):
        """
        Terminate an executed tenancy early.

        The end date is pulled in to ``termination_date`` when that is earlier.
        Payments and rent cycles already generated are left untouched.
        """
        from .models import Tenancy

        with transaction.atomic():
            locked = Tenancy.objects.select_for_update().get(pk=tenancy.pk)
            if locked.agreement_status != Tenancy.EXECUTED:
                raise ValidationError("Only executed tenancies can be terminated.")

            if termination_date is not None:
                if termination_date < locked.start_date:
                    raise ValidationError("Termination date cannot be before the start date.")
                if locked.end_date is None or termination_date < locked.end_date:
                    locked.end_date = termination_date
                locked.move_out_date = termination_date

            locked.agreement_status = Tenancy.TERMINATED
            locked.termination_reason = reason
            locked.updated_by = terminated_by
            locked.save(update_fields=[
                "agreement_status", "end_date", "move_out_date",
                "termination_reason", "updated_by", "updated_at",
            ])

        tenancy.agreement_status = locked.agreement_status
        tenancy.end_date = locked.end_date
        tenancy.move_out_date = locked.move_out_date
        logger.info("Terminated tenancy %s (%s)", tenancy.pk, reason or "no reason given")
        return tenancy

    @staticmethod
    def expire_ended(today):
        """Move executed tenancies whose end date has passed to expired. Returns the count."""
        from .models import Tenancy

        count = Tenancy.objects.filter(
            agreement_status=Tenancy.EXECUTED, end_date__lt=today
        ).update(agreement_status=Tenancy.EXPIRED, updated_at=timezone.now())
        if count:
            logger.info("Expired %d ended tenancies", count)
        return count
