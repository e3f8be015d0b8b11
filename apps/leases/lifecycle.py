"""
Tenancy state classification.

A tenancy's temporal state is derived from its agreement status and date
window relative to a given day. Classification never touches the database
and never raises; inconsistent records classify as ``pending`` and can be
flagged with ``has_integrity_violation`` for logging.
"""

import logging

from apps.billing.exceptions import DataIntegrityWarning

from .models import Tenancy

logger = logging.getLogger(__name__)

CURRENT = "current"
FUTURE = "future"
PAST = "past"
PENDING = "pending"

STATES = (CURRENT, FUTURE, PAST, PENDING)

CLOSED_STATUSES = (Tenancy.EXPIRED, Tenancy.TERMINATED)

MISSING_END_DATE = "executed_without_end_date"
END_BEFORE_START = "end_date_before_start_date"

_ISSUE_MESSAGES = {
    MISSING_END_DATE: "has no end date",
    END_BEFORE_START: "ends before it starts",
}


def integrity_issue(tenancy):
    """Name of the invariant an executed tenancy breaks, or None."""
    if tenancy.agreement_status != Tenancy.EXECUTED:
        return None
    if tenancy.end_date is None:
        return MISSING_END_DATE
    if tenancy.start_date is not None and tenancy.end_date < tenancy.start_date:
        return END_BEFORE_START
    return None


def has_integrity_violation(tenancy):
    """An executed tenancy must carry an end date on or after its start date."""
    return integrity_issue(tenancy) is not None


def classify(tenancy, today):
    status = tenancy.agreement_status
    start, end = tenancy.start_date, tenancy.end_date

    if status in CLOSED_STATUSES:
        return PAST
    if status != Tenancy.EXECUTED:
        return PENDING
    if end is None or start is None:
        return PENDING
    if end < start:
        return PENDING
    if start > today:
        return FUTURE
    if today <= end:
        return CURRENT
    return PAST


def is_current(tenancy, today):
    return classify(tenancy, today) == CURRENT


def partition_by_state(tenancies, today, warn=True):
    """
    Group tenancies by their classified state.

    Returns a dict keyed by every state (empty lists included). Integrity
    violations are logged at WARNING level unless ``warn`` is False.
    """
    groups = {state: [] for state in STATES}
    for tenancy in tenancies:
        if warn and has_integrity_violation(tenancy):
            log_integrity_violation(tenancy)
        groups[classify(tenancy, today)].append(tenancy)
    return groups


def log_integrity_violation(tenancy):
    issue = integrity_issue(tenancy)
    warning = DataIntegrityWarning(
        f"executed tenancy {tenancy.pk} {_ISSUE_MESSAGES.get(issue, issue)}; treating as pending",
        record_id=tenancy.pk,
    )
    logger.warning("%s: %s", type(warning).__name__, warning)
    return warning
