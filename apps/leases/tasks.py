import logging

from apps.core.clock import Clock

logger = logging.getLogger(__name__)


def expire_ended_tenancies():
    """Daily: executed tenancies whose end date has passed become expired."""
    from .services import TenancyService

    count = TenancyService.expire_ended(Clock().today())
    logger.info("expire_ended_tenancies: %d tenancies expired.", count)
    return count
