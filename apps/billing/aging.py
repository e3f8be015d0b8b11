"""
Payment aging and collection rate.

Works over any iterable of payment-like objects carrying ``amount``,
``due_date``, ``status`` and ``late_fee``. A payment due today is current,
not overdue.
"""

from apps.core.clock import month_bounds
from apps.core.dashboard_utils import ZERO, percent, to_decimal

PAID = "paid"

BUCKETS = (
    ("current", None, 0),
    ("1-7", 1, 7),
    ("8-15", 8, 15),
    ("16-30", 16, 30),
    ("31-60", 31, 60),
    ("60+", 61, None),
)


def bucket_for(days_past_due):
    for name, low, high in BUCKETS:
        if (low is None or days_past_due >= low) and (high is None or days_past_due <= high):
            return name
    return BUCKETS[-1][0]


def analyze(payments, today):
    """
    Bucket every unpaid payment by days past due.

    Returns a dict with a ``buckets`` mapping (each bucket holding ``count``
    and ``amount``) plus totals. Bucket counts and amounts always add up to
    the totals.
    """
    buckets = {name: {"count": 0, "amount": ZERO} for name, _, _ in BUCKETS}
    total_count = 0
    total_amount = ZERO
    overdue_count = 0
    overdue_amount = ZERO
    late_fees = ZERO
    oldest_days = 0

    for payment in payments:
        if payment.status == PAID:
            continue
        amount = to_decimal(payment.amount)
        days_past_due = (today - payment.due_date).days
        bucket = buckets[bucket_for(days_past_due)]
        bucket["count"] += 1
        bucket["amount"] += amount

        total_count += 1
        total_amount += amount
        late_fees += to_decimal(getattr(payment, "late_fee", None))
        if days_past_due > 0:
            overdue_count += 1
            overdue_amount += amount
            oldest_days = max(oldest_days, days_past_due)

    return {
        "as_of": today,
        "buckets": buckets,
        "total_count": total_count,
        "total_amount": total_amount,
        "overdue_count": overdue_count,
        "overdue_amount": overdue_amount,
        "late_fees": late_fees,
        "oldest_days_past_due": oldest_days,
    }


def collection_rate(payments, start, end):
    """Percent of the amount due in [start, end] that has been paid."""
    due = ZERO
    collected = ZERO
    for payment in payments:
        if not start <= payment.due_date <= end:
            continue
        amount = to_decimal(payment.amount)
        due += amount
        if payment.status == PAID:
            collected += amount
    return percent(collected, due)


def collection_summary(payments, month, year):
    start, end = month_bounds(month, year)
    in_period = [p for p in payments if start <= p.due_date <= end]

    total_due = sum((to_decimal(p.amount) for p in in_period), ZERO)
    paid = [p for p in in_period if p.status == PAID]
    total_collected = sum((to_decimal(p.amount) for p in paid), ZERO)

    return {
        "month": month,
        "year": year,
        "total_due": total_due,
        "total_collected": total_collected,
        "total_outstanding": total_due - total_collected,
        "payment_count": len(in_period),
        "paid_count": len(paid),
        "unpaid_count": len(in_period) - len(paid),
        "collection_rate": percent(total_collected, total_due),
    }
