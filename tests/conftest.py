"""
Shared fixtures for the rent engine tests.

Database fixtures build the smallest graph the engine needs: a building with
units, tenant accounts and tenancies. Factories are plain callables so tests
can create as many rows as they need with only the fields they care about.
"""

import itertools
from datetime import date
from decimal import Decimal

import pytest

from apps.core.clock import FixedClock

_seq = itertools.count(1)


@pytest.fixture
def clock():
    return FixedClock(date(2024, 5, 20))


@pytest.fixture
def admin_user(db):
    from apps.accounts.models import User

    return User.objects.create_user(
        username="admin", password="admin123", role="admin", is_staff=True
    )


@pytest.fixture
def admin_client(client, admin_user):
    client.force_login(admin_user)
    return client


@pytest.fixture
def make_tenant(db):
    from apps.accounts.models import User

    def factory(**kwargs):
        n = next(_seq)
        defaults = {
            "username": f"tenant{n}",
            "email": f"tenant{n}@example.com",
            "first_name": "Tenant",
            "last_name": str(n),
            "role": "tenant",
        }
        defaults.update(kwargs)
        return User.objects.create_user(password="tenant123", **defaults)

    return factory


@pytest.fixture
def building(db):
    from apps.properties.models import Building

    return Building.objects.create(name="Sunset Apartments", city="Los Angeles", state="CA")


@pytest.fixture
def make_unit(building):
    from apps.properties.models import Unit

    def factory(**kwargs):
        defaults = {
            "building": building,
            "unit_number": str(100 + next(_seq)),
            "floor": 1,
            "rent_amount": Decimal("15000.00"),
        }
        defaults.update(kwargs)
        return Unit.objects.create(**defaults)

    return factory


@pytest.fixture
def make_tenancy(make_unit, make_tenant):
    from apps.leases.models import Tenancy

    def factory(**kwargs):
        defaults = {
            "start_date": date(2024, 1, 1),
            "end_date": date(2024, 12, 31),
            "rent_amount": Decimal("15000.00"),
            "agreement_status": Tenancy.EXECUTED,
        }
        defaults.update(kwargs)
        if "unit" not in defaults:
            defaults["unit"] = make_unit()
        if "tenant" not in defaults:
            defaults["tenant"] = make_tenant()
        return Tenancy.objects.create(**defaults)

    return factory


@pytest.fixture
def make_payment(make_tenancy):
    from apps.billing.models import Payment

    def factory(**kwargs):
        defaults = {
            "payment_type": "rent",
            "amount": Decimal("15000.00"),
            "due_date": date(2024, 5, 1),
            "status": "pending",
        }
        defaults.update(kwargs)
        if "tenancy" not in defaults:
            defaults["tenancy"] = make_tenancy()
        return Payment.objects.create(**defaults)

    return factory
