"""
Ledger builder - merges charges and payments into a running-balance ledger
"""
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Optional

import pandas as pd

from engine.calendar_math import add_months, month_key, start_of_month
from engine.coverage import is_period_covered
from models.billing import (
    Invoice,
    InvoiceClassification,
    InvoiceStatus,
    Lease,
    LedgerState,
    Payment,
    Transaction,
)
from utils.errors import InvalidDateInput
from utils.helpers import get_month_label

# Charges sort before payments posted on the same day
KIND_ORDER = {'charge': 0, 'payment': 1}

LEDGER_COLUMNS = [
    'transaction_id',
    'kind',
    'category',
    'posted_at',
    'description',
    'reference',
    'status',
    'amount',
    'balance_after',
    'coverage_label',
]


def charge_from_invoice(invoice: Invoice) -> Transaction:
    """Ledger charge line for an invoice"""
    default_description = 'Water Bill' if invoice.invoice_type == 'water' else 'Monthly Rent'
    return Transaction(
        transaction_id=invoice.invoice_id,
        kind='charge',
        amount=invoice.amount,
        posted_at=invoice.due_date,
        category=invoice.invoice_type,
        description=invoice.description or default_description,
        reference=invoice.invoice_id[:8].upper(),
        status=invoice.status.value,
    )


def transaction_from_payment(payment: Payment, invoice_type: str = 'rent') -> Transaction:
    """Ledger payment line; posted on the payment date, else its creation date"""
    posted_at = payment.posted_at
    if posted_at is None:
        raise InvalidDateInput(
            f"Payment {payment.payment_id} has neither payment_date nor created_at"
        )

    method = payment.method or 'manual'
    label = 'Water Payment' if invoice_type == 'water' else 'Rent Payment'
    return Transaction(
        transaction_id=payment.payment_id,
        kind='payment',
        amount=-payment.amount_paid,
        posted_at=posted_at,
        category='payment',
        description=f"{label} ({method})",
        reference=payment.reference or payment.payment_id[:8].upper(),
        status='verified' if payment.verified else 'pending',
    )


def apply_running_balance(transactions: Iterable[Transaction]) -> List[Transaction]:
    """
    Sort by posting date (charges first on ties) and attach running balances.
    Positive balance means the tenant owes money.
    """
    ordered = sorted(transactions, key=lambda t: (t.posted_at, KIND_ORDER[t.kind]))

    balance = Decimal("0")
    result = []
    for txn in ordered:
        balance += txn.amount
        result.append(replace(txn, balance_after=balance))
    return result


def build_ledger(invoice: Invoice, payments: Iterable[Payment]) -> List[Transaction]:
    """Ledger for a single invoice: its charge followed by its payments"""
    transactions = [charge_from_invoice(invoice)]
    for payment in payments:
        transactions.append(transaction_from_payment(payment, invoice.invoice_type))
    return apply_running_balance(transactions)


def build_lease_ledger(
    invoices: Iterable[Invoice],
    payments: Iterable[Payment],
    lease: Optional[Lease] = None,
    include_coverage: bool = False
) -> List[Transaction]:
    """
    Ledger for a lease's whole billing history.

    Void invoices are left out. With ``include_coverage`` the months inside
    the lease's paid-until window that never received a rent charge get a
    synthetic coverage charge.
    """
    invoice_types = {}
    transactions = []
    for invoice in invoices:
        invoice_types[invoice.invoice_id] = invoice.invoice_type
        if invoice.is_void:
            continue
        transactions.append(charge_from_invoice(invoice))

    for payment in payments:
        invoice_type = invoice_types.get(payment.invoice_id, 'rent')
        transactions.append(transaction_from_payment(payment, invoice_type))

    if include_coverage and lease is not None:
        transactions.extend(build_coverage_charges(transactions, lease))

    return apply_running_balance(transactions)


def build_coverage_charges(transactions: Iterable[Transaction], lease: Lease) -> List[Transaction]:
    """
    Rent charges for prepaid months that have no invoice of their own.

    Fills the gaps between consecutive rent charges and the stretch from the
    last rent charge up to the paid-until month. With no rent charges at all,
    coverage is filled from the lease start month.
    """
    if lease.rent_paid_until is None or lease.monthly_rent <= 0:
        return []

    coverage_end = start_of_month(lease.rent_paid_until)
    rent_charges = sorted(
        (t for t in transactions if t.is_charge and t.category == 'rent'),
        key=lambda t: t.posted_at,
    )
    charged_months = {start_of_month(t.posted_at) for t in rent_charges}
    coverage_charges = []

    def append_range(from_month, to_month):
        cursor = add_months(from_month, 1)
        while cursor < to_month and cursor <= coverage_end:
            if cursor not in charged_months:
                label = get_month_label(cursor)
                coverage_charges.append(Transaction(
                    transaction_id=f"coverage-{month_key(cursor)}",
                    kind='charge',
                    amount=lease.monthly_rent,
                    posted_at=cursor,
                    category='rent',
                    description=f"Rent coverage applied ({label})",
                    reference=f"COV-{cursor.strftime('%Y%m')}",
                    coverage_label=label,
                ))
                charged_months.add(cursor)
            cursor = add_months(cursor, 1)

    if rent_charges:
        for current, following in zip(rent_charges, rent_charges[1:]):
            current_month = start_of_month(current.posted_at)
            next_month = start_of_month(following.posted_at)
            if add_months(current_month, 1) < next_month:
                append_range(current_month, next_month)

        last_month = start_of_month(rent_charges[-1].posted_at)
        if last_month < coverage_end:
            append_range(last_month, add_months(coverage_end, 1))
    else:
        start_month = start_of_month(lease.start_date)
        append_range(add_months(start_month, -1), add_months(coverage_end, 1))

    return coverage_charges


def classify_invoice_status(invoice: Invoice, lease: Lease) -> InvoiceClassification:
    """
    Display status of an invoice.

    An invoice reads as paid when its due date is inside the lease's paid-until
    window, when it bills a month before the lease's first billable month, or
    when its persisted status already says paid.
    """
    if not isinstance(invoice.status, InvoiceStatus):
        raise TypeError(
            f"Invoice {invoice.invoice_id} status must be an InvoiceStatus; "
            f"normalise raw values with normalize_invoice_status first"
        )

    is_covered = is_period_covered(invoice.due_date, lease.rent_paid_until)
    is_prestart = start_of_month(invoice.due_date) < lease.eligible_start
    paid = is_covered or is_prestart or invoice.status == InvoiceStatus.PAID

    return InvoiceClassification(
        status=InvoiceStatus.PAID.value if paid else InvoiceStatus.UNPAID.value,
        is_covered=is_covered,
        is_prestart=is_prestart,
    )


def slice_arrears_window(transactions: List[Transaction]) -> List[Transaction]:
    """
    Transactions that explain the current amount owed: everything after the
    last point the balance was settled or in credit. Empty when nothing is owed.
    """
    if not transactions or transactions[-1].balance_after <= 0:
        return []

    for index in range(len(transactions) - 1, -1, -1):
        if transactions[index].balance_after <= 0:
            return list(transactions[index + 1:])
    return list(transactions)


def classify_balance(balance) -> LedgerState:
    """Billing state for a running balance"""
    if balance > 0:
        return LedgerState.ARREARS
    if balance < 0:
        return LedgerState.PREPAID
    return LedgerState.SETTLED


def ledger_state(transactions: List[Transaction]) -> LedgerState:
    """Billing state at the end of a ledger"""
    if not transactions:
        return LedgerState.SETTLED
    return classify_balance(transactions[-1].balance_after)


def ledger_to_dataframe(transactions: List[Transaction]) -> pd.DataFrame:
    """Get a ledger as a pandas DataFrame (statement grid)"""
    if not transactions:
        return pd.DataFrame(columns=LEDGER_COLUMNS)

    data = []
    for t in transactions:
        data.append({
            'transaction_id': t.transaction_id,
            'kind': t.kind,
            'category': t.category,
            'posted_at': t.posted_at,
            'description': t.description,
            'reference': t.reference,
            'status': t.status,
            'amount': t.amount,
            'balance_after': t.balance_after,
            'coverage_label': t.coverage_label,
        })

    return pd.DataFrame(data, columns=LEDGER_COLUMNS)
