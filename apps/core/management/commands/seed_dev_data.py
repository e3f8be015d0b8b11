"""
Management command to create default development accounts and sample data.

Usage:
    python manage.py seed_dev_data          # Create accounts + sample data
    python manage.py seed_dev_data --reset  # Wipe DB and recreate everything
"""

import random
from datetime import date, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Seed the database with default development accounts and sample data"

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Flush the database before seeding",
        )

    def handle(self, *args, **options):
        if options["reset"]:
            self.stdout.write(self.style.WARNING("Flushing database..."))
            from django.core.management import call_command
            call_command("flush", "--no-input")

        self._create_users()
        self._create_buildings()
        self._create_tenancies()
        self._generate_rent()

        self.stdout.write(self.style.SUCCESS("\nDevelopment data seeded successfully!"))
        self._print_accounts()

    def _create_users(self):
        from apps.accounts.models import User

        self.stdout.write("Creating user accounts...")

        self.admin_user, created = User.objects.get_or_create(
            username="admin",
            defaults={
                "email": "admin@rentengine.local",
                "first_name": "Alex",
                "last_name": "Manager",
                "role": "admin",
                "is_staff": True,
                "is_superuser": True,
            },
        )
        self.admin_user.set_password("admin123")
        self.admin_user.save()
        self.stdout.write(f"  {'Created' if created else 'Updated'}: admin (Admin)")

        tenant_data = [
            ("tenant1", "tenant1@example.com", "Jane", "Smith", "+15551234001"),
            ("tenant2", "tenant2@example.com", "Bob", "Johnson", "+15551234002"),
            ("tenant3", "tenant3@example.com", "Maria", "Garcia", "+15551234003"),
            ("tenant4", "tenant4@example.com", "David", "Williams", "+15551234004"),
            ("tenant5", "tenant5@example.com", "Sarah", "Brown", "+15551234005"),
        ]

        self.tenants = []
        for username, email, first, last, phone in tenant_data:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "email": email,
                    "first_name": first,
                    "last_name": last,
                    "role": "tenant",
                    "phone_number": phone,
                },
            )
            user.set_password("tenant123")
            user.save()
            self.tenants.append(user)
            self.stdout.write(f"  {'Created' if created else 'Updated'}: {username} (Tenant)")

    def _create_buildings(self):
        from apps.properties.models import Building, Unit

        self.stdout.write("Creating buildings and units...")

        self.building, created = Building.objects.get_or_create(
            name="Sunset Apartments",
            defaults={
                "address_line1": "100 Sunset Blvd",
                "city": "Los Angeles",
                "state": "CA",
                "zip_code": "90028",
            },
        )
        self.stdout.write(f"  {'Created' if created else 'Exists'}: {self.building.name}")

        rents = [1200, 1350, 1500, 1650, 1800, 1200, 1350, 1500]
        self.units = []
        for i in range(1, 9):
            unit, _ = Unit.objects.get_or_create(
                building=self.building,
                unit_number=f"{100 + i}",
                defaults={
                    "rent_amount": Decimal(str(rents[i - 1])),
                    "security_deposit": Decimal(str(rents[i - 1])),
                    "floor": 1 if i <= 4 else 2,
                    "status": "maintenance" if i == 8 else "available",
                },
            )
            self.units.append(unit)

    def _create_tenancies(self):
        from apps.leases.models import Tenancy

        self.stdout.write("Creating tenancies...")
        today = date.today()

        for tenant, unit in zip(self.tenants, self.units):
            start = today - timedelta(days=random.randint(60, 300))
            Tenancy.objects.get_or_create(
                unit=unit,
                tenant=tenant,
                defaults={
                    "start_date": start,
                    "end_date": start + timedelta(days=365),
                    "rent_amount": unit.rent_amount,
                    "security_deposit": unit.security_deposit,
                    "agreement_status": Tenancy.EXECUTED,
                    "move_in_date": start,
                    "created_by": self.admin_user,
                },
            )

        # A move-in two weeks out and a unit vacated two months ago
        Tenancy.objects.get_or_create(
            unit=self.units[5],
            tenant=self.tenants[0],
            defaults={
                "start_date": today + timedelta(days=14),
                "end_date": today + timedelta(days=14 + 365),
                "rent_amount": self.units[5].rent_amount,
                "agreement_status": Tenancy.EXECUTED,
                "created_by": self.admin_user,
            },
        )
        Tenancy.objects.get_or_create(
            unit=self.units[6],
            tenant=self.tenants[1],
            defaults={
                "start_date": today - timedelta(days=425),
                "end_date": today - timedelta(days=60),
                "rent_amount": self.units[6].rent_amount,
                "agreement_status": Tenancy.EXPIRED,
                "created_by": self.admin_user,
            },
        )

    def _generate_rent(self):
        from apps.billing.services import RentCycleGenerator

        self.stdout.write("Generating this month's rent...")
        summary = RentCycleGenerator(trigger="manual").run()
        self.stdout.write(
            f"  {summary['payments_created']} payments, {summary['skipped']} already billed"
        )

    def _print_accounts(self):
        self.stdout.write("\nAccounts:")
        self.stdout.write("  admin   / admin123   (Django admin at /django-admin/)")
        self.stdout.write("  tenant1 / tenant123  (and tenant2..tenant5)")
