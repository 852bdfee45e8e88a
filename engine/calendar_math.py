"""
Calendar and billing-period arithmetic.

Every billing decision only depends on which calendar month a date falls in,
so all helpers here work on plain ``date`` values anchored to UTC. Datetimes
are reduced to their UTC calendar day before any arithmetic.
"""
import calendar
from datetime import date, datetime, timezone
from typing import Iterator, List, Optional

from dateutil.relativedelta import relativedelta
import pandas as pd

from utils.errors import InvalidDateInput


def coerce_date(value, field_name: str = "date") -> date:
    """
    Return the UTC calendar date of a date/datetime value.

    Naive datetimes are taken to already be UTC. Anything else (strings,
    None, numbers, pandas NaT) raises InvalidDateInput; parse raw values first.
    """
    if value is pd.NaT:
        raise InvalidDateInput(f"{field_name} is missing (NaT)")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidDateInput(
        f"{field_name} must be a date, got {type(value).__name__}: {value!r}"
    )


def utc_today() -> date:
    """Current calendar day in UTC"""
    return datetime.now(timezone.utc).date()


def start_of_month(value) -> date:
    """First calendar day of the month containing ``value``"""
    d = coerce_date(value)
    return d.replace(day=1)


def days_in_month(value) -> int:
    d = coerce_date(value)
    return calendar.monthrange(d.year, d.month)[1]


def end_of_month(value) -> date:
    """Last calendar day of the month containing ``value``"""
    d = coerce_date(value)
    return d.replace(day=days_in_month(d))


def add_months(value, months: int) -> date:
    """
    Shift a date by a number of months (negative allowed).

    The day of month is clamped to the last valid day of the target month,
    e.g. 2024-01-31 + 1 month -> 2024-02-29.
    """
    if isinstance(months, bool) or not isinstance(months, int):
        raise TypeError(f"months must be an int, got {type(months).__name__}")
    return coerce_date(value) + relativedelta(months=months)


def months_between(start, end) -> int:
    """Signed number of month boundaries from ``start``'s month to ``end``'s month"""
    a = coerce_date(start, "start")
    b = coerce_date(end, "end")
    return (b.year - a.year) * 12 + (b.month - a.month)


def to_iso_date(value) -> str:
    """Format as YYYY-MM-DD"""
    return coerce_date(value).isoformat()


def month_key(value) -> str:
    """Format as YYYY-MM"""
    d = coerce_date(value)
    return f"{d.year:04d}-{d.month:02d}"


def eligible_start(lease_start) -> date:
    """
    First billable month of a lease.

    A lease starting on the 1st is billed from that month; one starting later
    in the month is billed from the following month.
    """
    start = coerce_date(lease_start, "lease_start")
    month_start = start_of_month(start)
    if start.day > 1:
        return add_months(month_start, 1)
    return month_start


def iter_month_starts(start, end) -> Iterator[date]:
    """Month starts from ``start``'s month through ``end``'s month inclusive"""
    cursor = start_of_month(start)
    last = start_of_month(end)
    while cursor <= last:
        yield cursor
        cursor = add_months(cursor, 1)


def build_due_dates(
    start,
    months: int,
    due_day: int,
    lease_end: Optional[date] = None
) -> List[date]:
    """
    Due dates for ``months`` consecutive months beginning at ``start``'s month.

    Each due date falls on ``due_day`` clamped to the month length. The
    schedule stops once it runs past the month of ``lease_end``.
    """
    if not 1 <= due_day <= 31:
        raise ValueError(f"due_day must be between 1 and 31, got {due_day}")

    results = []
    cursor = start_of_month(start)
    end_cap = start_of_month(lease_end) if lease_end is not None else None

    for _ in range(max(0, months)):
        if end_cap is not None and cursor > end_cap:
            break
        results.append(cursor.replace(day=min(due_day, days_in_month(cursor))))
        cursor = add_months(cursor, 1)

    return results
