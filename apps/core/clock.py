"""
Time source for the billing and reporting engine.

Every component that needs "today" receives a Clock instead of reading the
wall clock itself, so reports and billing runs are deterministic under test
and always agree on the calendar day for the configured billing time zone.
"""

import calendar
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

MAX_DUE_DAY = 28


class Clock:
    """Wall clock pinned to the billing time zone."""

    def __init__(self, tz_name=None):
        self.tz_name = tz_name or settings.BILLING["TIME_ZONE"]
        self.tz = ZoneInfo(self.tz_name)

    def now(self) -> datetime:
        return timezone.now().astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def current_period(self):
        """Return (month, year) for today."""
        today = self.today()
        return today.month, today.year


class FixedClock(Clock):
    """Clock frozen at a given date. Used by backfills and tests."""

    def __init__(self, today, tz_name="UTC"):
        super().__init__(tz_name)
        self._today = today

    def now(self) -> datetime:
        return datetime.combine(self._today, datetime.min.time(), tzinfo=self.tz)

    def today(self) -> date:
        return self._today


def days_between(start, end) -> int:
    """Signed whole days from start to end."""
    return (end - start).days


def add_days(day, days) -> date:
    return day + timedelta(days=days)


def month_bounds(month, year):
    """First and last calendar day of a month."""
    validate_period(month, year)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def cycle_due_date(month, year, due_day=None) -> date:
    """
    Due date of the rent cycle for a month.

    The day of month comes from BILLING["RENT_DUE_DAY"] unless given, and is
    capped at 28 so every month has it.
    """
    validate_period(month, year)
    if due_day is None:
        due_day = settings.BILLING["RENT_DUE_DAY"]
    due_day = max(1, min(int(due_day), MAX_DUE_DAY))
    return date(year, month, due_day)


def validate_period(month, year):
    if not 1 <= int(month) <= 12:
        raise ValueError(f"Invalid cycle month: {month}")
    if not 1900 <= int(year) <= 9999:
        raise ValueError(f"Invalid cycle year: {year}")
