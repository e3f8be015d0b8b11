"""
Tenant account services.

An archived (inactive) tenant account stops receiving new rent cycles; the
monthly generator only bills tenancies whose tenant account is active.
"""

import logging

logger = logging.getLogger(__name__)


def archive_tenant(user):
    """
    Archive a tenant by deactivating their account.

    Archived tenants:
    - Cannot log in
    - Are skipped by monthly rent generation
    - Keep all historical data (tenancies, payments, rent cycles)
    """
    user.is_active = False
    user.save(update_fields=["is_active"])
    logger.info("Archived tenant account %s", user.pk)


def restore_tenant(user):
    """Restore an archived tenant."""
    user.is_active = True
    user.save(update_fields=["is_active"])
    logger.info("Restored tenant account %s", user.pk)


def get_open_tenancies(user):
    """Executed tenancies of this tenant, for an archive warning."""
    from apps.leases.models import Tenancy

    return user.tenancies.filter(agreement_status=Tenancy.EXECUTED)
