"""
Numeric helpers shared by the occupancy and collections reports.
"""

from decimal import Decimal, InvalidOperation

ZERO = Decimal("0.00")


def to_decimal(value):
    """Coerce a stored amount to Decimal, treating missing or malformed values as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def percent(numerator, denominator):
    """Percentage rounded to 2 places; 0 when the denominator is zero."""
    try:
        numerator = float(numerator or 0)
        denominator = float(denominator or 0)
    except (TypeError, ValueError):
        return 0.0
    if denominator == 0:
        return 0.0
    return round(numerator / denominator * 100, 2)


def calculate_trend(current_value, previous_value):
    """Calculate percentage change between periods."""
    try:
        current = float(current_value) if current_value else 0
        previous = float(previous_value) if previous_value else 0
    except (TypeError, ValueError):
        return 0

    if previous == 0:
        return 0 if current == 0 else 100
    return round(((current - previous) / previous) * 100, 1)


def occupancy_grade(rate):
    if rate >= 90:
        return "A"
    if rate >= 80:
        return "B"
    if rate >= 70:
        return "C"
    return "D"
