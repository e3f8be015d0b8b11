"""
Run monthly rent generation by hand.

Usage:
    python manage.py generate_rent_cycles                      # current month
    python manage.py generate_rent_cycles --month 5 --year 2024
    python manage.py generate_rent_cycles --json               # print the summary as JSON

Goes through the same lock as the scheduled run, so it is safe to use for
backfills and retries while the cluster is up.
"""

import json
import signal
import threading

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from apps.billing.exceptions import RunLevelFailure
from apps.billing.services import RentCycleGenerator


class Command(BaseCommand):
    help = "Generate rent payments and rent cycles for a month"

    def add_arguments(self, parser):
        parser.add_argument("--month", type=int, help="Cycle month (1-12). Defaults to the current month.")
        parser.add_argument("--year", type=int, help="Cycle year. Defaults to the current year.")
        parser.add_argument("--json", action="store_true", help="Print the run summary as JSON")

    def handle(self, *args, **options):
        stop_event = threading.Event()
        previous = self._install_signal_handlers(stop_event)
        try:
            summary = RentCycleGenerator(stop_event=stop_event, trigger="manual").run(
                options["month"], options["year"]
            )
        except ValueError as exc:
            raise CommandError(str(exc)) from exc
        except RunLevelFailure as exc:
            raise CommandError(f"Rent generation failed: {exc}") from exc
        finally:
            self._restore_signal_handlers(previous)

        if options["json"]:
            self.stdout.write(json.dumps(summary, cls=DjangoJSONEncoder, indent=2))
            return

        if summary["status"] == "skipped":
            self.stdout.write(self.style.WARNING("Another rent generation run is in progress; nothing done."))
            return

        self.stdout.write(
            f"{summary['month']}/{summary['year']} (due {summary['due_date']}): "
            f"{summary['payments_created']} payments, "
            f"{summary['rent_cycles_created']} rent cycles, "
            f"{summary['skipped']} already billed"
        )
        for error in summary["errors"]:
            self.stdout.write(self.style.ERROR(f"  tenancy {error['tenancy_id']}: {error['message']}"))
        if summary["stopped"]:
            self.stdout.write(self.style.WARNING("Stopped early; re-run to finish the remaining tenancies."))
        elif summary["errors"]:
            self.stdout.write(self.style.WARNING(f"Completed with {len(summary['errors'])} errors."))
        else:
            self.stdout.write(self.style.SUCCESS("Rent generation completed."))

    def _install_signal_handlers(self, stop_event):
        if threading.current_thread() is not threading.main_thread():
            return {}

        def request_stop(signum, frame):
            self.stderr.write("Stop requested; finishing the current tenancy...")
            stop_event.set()

        previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, request_stop)
        return previous

    def _restore_signal_handlers(self, previous):
        for sig, handler in previous.items():
            signal.signal(sig, handler)
