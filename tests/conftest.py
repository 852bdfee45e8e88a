"""
Pytest fixtures for the rent ledger test suite.
"""
from datetime import date
from decimal import Decimal

import pytest

from models.billing import Invoice, InvoiceStatus, Lease, Payment


@pytest.fixture
def mid_month_lease():
    """Lease that started mid-January, so billing starts in February."""
    return Lease(
        lease_id="lease-1",
        start_date=date(2024, 1, 15),
        end_date=date(2024, 12, 31),
        monthly_rent=Decimal("5000"),
        rent_paid_until=date(2024, 3, 31),
        unit_number="A1",
    )


@pytest.fixture
def make_invoice():
    """Factory for invoices with sensible defaults."""
    def _make(invoice_id, due_date, amount="5000", status=InvoiceStatus.UNPAID, lease_id="lease-1", **kwargs):
        return Invoice(
            invoice_id=invoice_id,
            lease_id=lease_id,
            amount=Decimal(amount),
            due_date=due_date,
            status=status,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_payment():
    """Factory for payments with sensible defaults."""
    def _make(payment_id, payment_date, amount="5000", invoice_id="inv-1", **kwargs):
        return Payment(
            payment_id=payment_id,
            invoice_id=invoice_id,
            amount_paid=Decimal(amount),
            payment_date=payment_date,
            **kwargs,
        )
    return _make
