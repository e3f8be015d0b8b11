"""
Register the billing engine's Django-Q2 schedules.

Usage:
    python manage.py setup_billing_schedule           # create or update
    python manage.py setup_billing_schedule --remove  # delete them

Idempotent: schedules are matched by name and updated in place.
"""

from django.conf import settings
from django.core.management.base import BaseCommand


def billing_schedules():
    return [
        ("Monthly rent generation", "apps.billing.tasks.generate_monthly_rent_cycles",
         settings.BILLING["SCHEDULE_CRON"]),
        ("Mark overdue payments", "apps.billing.tasks.mark_overdue_payments", "0 1 * * *"),
        ("Expire ended tenancies", "apps.leases.tasks.expire_ended_tenancies", "5 0 * * *"),
        ("Occupancy snapshots", "apps.properties.tasks.capture_occupancy_snapshots", "15 1 * * *"),
        ("Revenue snapshots", "apps.billing.tasks.capture_revenue_snapshots", "30 1 * * *"),
        ("Job run cleanup", "apps.billing.tasks.cleanup_job_runs", "0 3 * * 0"),
    ]


class Command(BaseCommand):
    help = "Create or update the Django-Q2 schedules for rent generation and reporting"

    def add_arguments(self, parser):
        parser.add_argument(
            "--remove",
            action="store_true",
            help="Delete the billing schedules instead of registering them",
        )

    def handle(self, *args, **options):
        from django_q.models import Schedule

        schedules = billing_schedules()
        if options["remove"]:
            deleted, _ = Schedule.objects.filter(name__in=[s[0] for s in schedules]).delete()
            self.stdout.write(self.style.WARNING(f"Removed {deleted} schedules."))
            return

        for name, func, cron in schedules:
            _, created = Schedule.objects.update_or_create(
                name=name,
                defaults={
                    "func": func,
                    "schedule_type": Schedule.CRON,
                    "cron": cron,
                    "repeats": -1,
                },
            )
            self.stdout.write(f"  {'Created' if created else 'Updated'}: {name} ({cron})")

        self.stdout.write(self.style.SUCCESS("Billing schedules registered."))
