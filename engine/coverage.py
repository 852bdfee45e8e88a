"""
Coverage and proration calculations.

A lease's ``rent_paid_until`` is the last calendar day for which rent is
settled. These functions derive prepaid month counts from it, decide whether a
billing period is covered, and decay multi-month payments as time passes.
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, List

from config import settings
from engine.calendar_math import (
    add_months,
    coerce_date,
    month_key,
    months_between,
    start_of_month,
)
from models.billing import CoverageSummary, Invoice, Lease, PrepaymentCheck
from utils.helpers import format_currency, to_decimal
from utils.validations import validate_months_paid


def compute_prepaid_months(rent_paid_until: Optional[date], as_of: date) -> int:
    """
    Number of months covered from ``as_of``'s month through the paid-until
    month, inclusive. A paid-until date inside the current month gives 1.
    """
    as_of = coerce_date(as_of, "as_of")
    if rent_paid_until is None:
        return 0

    current_month = start_of_month(as_of)
    paid_month = start_of_month(coerce_date(rent_paid_until, "rent_paid_until"))
    if paid_month < current_month:
        return 0
    return months_between(current_month, paid_month) + 1


def is_period_covered(period_start: date, rent_paid_until: Optional[date]) -> bool:
    """True when the period starts on or before the paid-until day"""
    period_start = coerce_date(period_start, "period_start")
    if rent_paid_until is None:
        return False
    return period_start <= coerce_date(rent_paid_until, "rent_paid_until")


def months_covered_ahead(rent_paid_until: date, today: date) -> int:
    """Signed month distance from today's month to the paid-until month"""
    return months_between(
        start_of_month(coerce_date(today, "today")),
        start_of_month(coerce_date(rent_paid_until, "rent_paid_until")),
    )


def decrement_monthly_countdown(rent_paid_until: Optional[date], today: date) -> Optional[date]:
    """
    Consume one month of prepaid coverage.

    When the paid-until month is more than one month ahead of today's month it
    moves back by exactly one month (day of month clamped); otherwise it is
    returned unchanged. Must be applied at most once per calendar month per
    lease; ``engine.countdown_job`` enforces that.
    """
    if rent_paid_until is None:
        return None
    rent_paid_until = coerce_date(rent_paid_until, "rent_paid_until")

    if months_covered_ahead(rent_paid_until, today) > 1:
        return add_months(rent_paid_until, -1)
    return rent_paid_until


def reconcile_payment_months_remaining(
    original_months_paid: int,
    coverage_start_date: date,
    today: date
) -> int:
    """Months of a multi-month payment not yet consumed as of ``today``"""
    months_elapsed = max(
        0,
        months_between(start_of_month(coverage_start_date), start_of_month(today)),
    )
    return max(0, int(original_months_paid) - months_elapsed)


def summarize_coverage(
    lease: Lease,
    invoices: Iterable[Invoice],
    as_of: date,
    scan_limit: int = settings.COVERAGE_SCAN_MONTHS
) -> CoverageSummary:
    """
    Derive the paid-through position of a lease from its rent invoices.

    Walks forward from the lease's eligible start month while each month has
    a settled rent invoice. Invoices without a period_start are not counted.
    The first unpaid (or missing) month is the next rent due date; the day
    before it is ``rent_paid_until``. Prepaid months are the settled months
    after the current month.
    """
    as_of = coerce_date(as_of, "as_of")
    first_billable = lease.eligible_start
    current_month = start_of_month(as_of)
    next_month = add_months(current_month, 1)

    paid_months = set()
    for invoice in invoices:
        if invoice.lease_id != lease.lease_id or not invoice.is_rent:
            continue
        if invoice.is_void or not invoice.is_settled:
            continue
        # A due date alone does not say which month was paid for
        if invoice.period_start is None:
            continue
        if invoice.period_month >= first_billable:
            paid_months.add(invoice.period_month)

    cursor = first_billable
    for _ in range(scan_limit):
        if cursor not in paid_months:
            break
        cursor = add_months(cursor, 1)

    rent_paid_until = None
    if cursor != first_billable:
        # Last day of the final contiguous paid month
        rent_paid_until = cursor - timedelta(days=1)

    prepaid_start = max(next_month, first_billable)
    prepaid_months = 0
    if cursor > prepaid_start:
        prepaid_months = max(0, months_between(prepaid_start, cursor))

    return CoverageSummary(
        eligible_start=first_billable,
        next_rent_due_date=cursor,
        rent_paid_until=rent_paid_until,
        prepaid_months=prepaid_months,
    )


def resolve_coverage_start(
    lease: Lease,
    as_of: date,
    oldest_unpaid_due: Optional[date] = None,
    latest_due: Optional[date] = None
) -> date:
    """
    Month a new rent payment starts paying for.

    Preference order: the oldest unpaid invoice month, the month after
    ``rent_paid_until``, the month after the latest invoice, the current
    month. Never earlier than the lease's start month.
    """
    lease_month = start_of_month(lease.start_date)

    if oldest_unpaid_due is not None:
        candidate = start_of_month(oldest_unpaid_due)
    elif lease.rent_paid_until is not None:
        candidate = add_months(start_of_month(lease.rent_paid_until), 1)
    elif latest_due is not None:
        candidate = add_months(start_of_month(latest_due), 1)
    else:
        candidate = start_of_month(as_of)

    return max(candidate, lease_month)


def check_prepayment(
    amount_paid,
    months_paid: int,
    monthly_rent,
    unpaid_count: int = 0,
    coverage_start: Optional[date] = None
) -> PrepaymentCheck:
    """
    Validate a (possibly multi-month) rent payment against the lease rent.

    An amount outside the tolerance band of rent x months is an error; smaller
    deviations and unusually large prepayments produce warnings.
    """
    months = validate_months_paid(months_paid)
    amount = to_decimal(amount_paid)
    rent = to_decimal(monthly_rent)

    errors: List[str] = []
    warnings: List[str] = []

    expected = rent * months
    variance = expected * Decimal(str(settings.AMOUNT_TOLERANCE))
    delta = amount - expected

    if abs(delta) > variance:
        errors.append(
            f"Payment amount {format_currency(amount)} does not match the expected "
            f"{format_currency(expected)} for {months} month(s)."
        )
    elif delta > 0:
        warnings.append(
            f"Overpayment detected: +{format_currency(delta)} will still be applied to the covered months."
        )
    elif delta < 0:
        warnings.append(
            f"Underpayment detected: -{format_currency(abs(delta))} may leave part of a month unpaid."
        )

    if months > settings.VERY_LARGE_PREPAYMENT_MONTHS:
        warnings.append("Large prepayment detected (over 12 months). Ensure tenant intent is confirmed.")
    elif months > settings.LARGE_PREPAYMENT_MONTHS:
        warnings.append("Large prepayment detected (6+ months). Confirm tenant intent.")

    if months > unpaid_count:
        warnings.append(
            "Prepayment exceeds current unpaid invoices. Future invoices will be generated to absorb the payment."
        )

    covers_months = []
    if coverage_start is not None:
        first = start_of_month(coverage_start)
        covers_months = [month_key(add_months(first, i)) for i in range(months)]

    return PrepaymentCheck(
        is_valid=not errors,
        expected_amount=expected,
        errors=errors,
        warnings=warnings,
        covers_months=covers_months,
    )
