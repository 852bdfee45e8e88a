"""
Input validation utilities
"""
from typing import Optional
from datetime import date

from config import settings
from utils.errors import InvalidLeaseError


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> bool:
    """Validate that date range is logical"""
    if not start_date or not end_date:
        return False

    return start_date <= end_date


def ensure_lease_dates(lease_id: str, start_date: date, end_date: Optional[date]):
    """Raise when a lease ends before it starts"""
    if end_date is not None and not validate_date_range(start_date, end_date):
        raise InvalidLeaseError(
            f"Lease {lease_id}: end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}"
        )


def validate_months_paid(months_paid) -> int:
    """
    Validate a months-paid count, returning it as an int

    Integral strings such as "3" (form input) are accepted.
    """
    not_whole = f"months_paid must be a whole number of months, got {months_paid!r}"
    if isinstance(months_paid, bool):
        raise ValueError(not_whole)
    if isinstance(months_paid, str):
        text = months_paid.strip()
        if not text.removeprefix("-").isdigit():
            raise ValueError(not_whole)
        months = int(text)
    else:
        try:
            months = int(months_paid)
        except (ValueError, TypeError, OverflowError) as exc:
            raise ValueError(not_whole) from exc
        if months != months_paid:
            raise ValueError(not_whole)
    if months < 1:
        raise ValueError(f"months_paid must be at least 1, got {months_paid!r}")
    return months


def validate_statement_period(period: str) -> str:
    """Validate a statement look-back period name"""
    if period not in settings.STATEMENT_PERIODS:
        valid = ", ".join(settings.STATEMENT_PERIODS)
        raise ValueError(f"Unknown statement period {period!r}; expected one of: {valid}")
    return period
