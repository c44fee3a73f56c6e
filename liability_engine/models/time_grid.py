"""
Calendar month arithmetic for payoff projections.

Projections advance in whole calendar months from a start date. The
day-of-month is preserved where the target month has it and clamped to the
month's last day otherwise (Jan 31 + 1 month -> Feb 28/29).
"""

from datetime import date, datetime, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta


def add_months(start: date, months: int) -> date:
    """Return the calendar date ``months`` months after ``start``."""
    return start + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end`` (negative if end is earlier)."""
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def today_utc() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def resolve_start_date(start_date: Optional[date]) -> date:
    """Use the supplied start date, defaulting to today (UTC)."""
    return start_date if start_date is not None else today_utc()
