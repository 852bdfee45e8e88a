"""
Data models for the rent ledger engine
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from config import settings
from engine.calendar_math import coerce_date, start_of_month, eligible_start
from utils.errors import InvalidLeaseError
from utils.helpers import to_decimal
from utils.validations import ensure_lease_dates


class InvoiceStatus(Enum):
    """Normalised persisted invoice status"""
    PAID = "paid"
    UNPAID = "unpaid"
    UNKNOWN = "unknown"


class LedgerState(Enum):
    """Billing state of a lease, derived from its running balance"""
    SETTLED = "settled"
    ARREARS = "arrears"
    PREPAID = "prepaid"


def _optional_date(value, field_name: str) -> Optional[date]:
    if value is None:
        return None
    return coerce_date(value, field_name)


@dataclass
class Lease:
    """Represents a lease agreement"""
    lease_id: str
    start_date: date
    end_date: Optional[date] = None
    monthly_rent: Decimal = Decimal("0")
    rent_paid_until: Optional[date] = None
    status: str = "active"
    tenant_id: Optional[str] = None
    unit_number: Optional[str] = None

    def __post_init__(self):
        self.start_date = coerce_date(self.start_date, "start_date")
        self.end_date = _optional_date(self.end_date, "end_date")
        self.rent_paid_until = _optional_date(self.rent_paid_until, "rent_paid_until")
        self.monthly_rent = to_decimal(self.monthly_rent)

        ensure_lease_dates(self.lease_id, self.start_date, self.end_date)
        if self.monthly_rent < 0:
            raise InvalidLeaseError(f"Lease {self.lease_id}: monthly_rent cannot be negative")

    @property
    def eligible_start(self) -> date:
        """First billable month (a mid-month move-in is billed from the next month)"""
        return eligible_start(self.start_date)

    @property
    def is_billable(self) -> bool:
        """Check if lease is in a status that accrues rent"""
        return self.status in settings.BILLABLE_LEASE_STATUSES


@dataclass
class Invoice:
    """Represents one billed charge for one period"""
    invoice_id: str
    lease_id: str
    amount: Decimal
    due_date: date
    invoice_type: str = "rent"  # rent, water
    period_start: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.UNKNOWN
    description: Optional[str] = None
    total_paid: Decimal = Decimal("0")
    is_void: bool = False
    months_covered: int = 0

    def __post_init__(self):
        self.amount = to_decimal(self.amount)
        self.total_paid = to_decimal(self.total_paid)
        self.due_date = coerce_date(self.due_date, "due_date")
        self.period_start = _optional_date(self.period_start, "period_start")

    @property
    def period_month(self) -> date:
        """Month this invoice bills for"""
        if self.period_start is not None:
            return start_of_month(self.period_start)
        return start_of_month(self.due_date)

    @property
    def is_rent(self) -> bool:
        return self.invoice_type == "rent"

    @property
    def is_settled(self) -> bool:
        """Paid by status, or by recorded payments covering the amount"""
        if self.is_void:
            return False
        if self.status == InvoiceStatus.PAID:
            return True
        ratio = Decimal(str(settings.PAID_RATIO))
        return self.amount > 0 and self.total_paid >= self.amount * ratio

    @property
    def outstanding(self) -> Decimal:
        if self.is_void or self.status == InvoiceStatus.PAID:
            return Decimal("0")
        return max(Decimal("0"), self.amount - self.total_paid)


@dataclass
class Payment:
    """Represents money received against an invoice"""
    payment_id: str
    invoice_id: Optional[str]
    amount_paid: Decimal
    payment_date: Optional[date] = None
    created_at: Optional[date] = None
    verified: bool = False
    months_paid: int = 1
    method: Optional[str] = None  # mpesa, bank_transfer, cash, cheque
    reference: Optional[str] = None

    def __post_init__(self):
        self.amount_paid = to_decimal(self.amount_paid)
        self.payment_date = _optional_date(self.payment_date, "payment_date")
        self.created_at = _optional_date(self.created_at, "created_at")
        self.months_paid = max(1, int(self.months_paid or 1))

    @property
    def posted_at(self) -> Optional[date]:
        return self.payment_date or self.created_at


@dataclass
class Transaction:
    """A ledger line: a charge (positive) or a payment (negative)"""
    transaction_id: str
    kind: str  # charge, payment
    amount: Decimal
    posted_at: date
    balance_after: Decimal = Decimal("0")
    category: str = "rent"  # rent, water, payment
    description: str = ""
    reference: Optional[str] = None
    status: str = "posted"
    coverage_label: Optional[str] = None

    @property
    def is_charge(self) -> bool:
        return self.kind == "charge"

    @property
    def is_payment(self) -> bool:
        return self.kind == "payment"


@dataclass
class InvoiceClassification:
    """Display status of an invoice after coverage and lease-start checks"""
    status: str  # paid, unpaid
    is_covered: bool
    is_prestart: bool

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID.value


@dataclass
class CoverageSummary:
    """Paid-through position of a lease derived from contiguous paid months"""
    eligible_start: date
    next_rent_due_date: date
    rent_paid_until: Optional[date] = None
    prepaid_months: int = 0


@dataclass
class PrepaymentCheck:
    """Outcome of validating a multi-month rent payment"""
    is_valid: bool
    expected_amount: Decimal
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    covers_months: List[str] = field(default_factory=list)


@dataclass
class StatementSummary:
    opening_balance: Decimal = Decimal("0")
    closing_balance: Decimal = Decimal("0")
    total_charges: Decimal = Decimal("0")
    total_payments: Decimal = Decimal("0")


@dataclass
class StatementView:
    """A statement restricted to a look-back period"""
    cutoff: Optional[date]
    transactions: List[Transaction]
    period_start: Optional[date]
    period_end: Optional[date]
    summary: StatementSummary


@dataclass
class CountdownResult:
    """Outcome of one monthly countdown run"""
    execution_date: date
    current_month: date
    total_leases: int = 0
    updated_leases: List[Lease] = field(default_factory=list)
    updates: List[dict] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return len(self.updates)
