"""
Tests for engine.arrears.
"""
from datetime import date
from decimal import Decimal

import pytest

from engine.arrears import ArrearsReport, ageing_bucket, days_overdue
from models.billing import InvoiceStatus, Lease


@pytest.mark.parametrize("days,bucket", [
    (0, "0-30"),
    (30, "0-30"),
    (31, "31-60"),
    (60, "31-60"),
    (90, "61-90"),
    (91, "90+"),
])
def test_ageing_bucket(days, bucket):
    assert ageing_bucket(days) == bucket


def test_days_overdue_never_negative():
    assert days_overdue(date(2024, 3, 10), date(2024, 3, 1)) == 0
    assert days_overdue(date(2024, 3, 1), date(2024, 3, 11)) == 10


class TestArrearsReport:
    @pytest.fixture
    def report(self, make_invoice):
        invoices = [
            make_invoice("a", date(2024, 5, 5), lease_id="L1"),
            make_invoice("b", date(2024, 3, 1), amount="800", lease_id="L2",
                         invoice_type="water", total_paid=Decimal("300")),
            make_invoice("c", date(2024, 4, 1), lease_id="L1", status=InvoiceStatus.PAID),
            make_invoice("d", date(2024, 4, 1), lease_id="L1", is_void=True),
            make_invoice("e", date(2024, 6, 5), lease_id="L1"),
            make_invoice("f", date(2024, 6, 1), lease_id="L1"),
        ]
        leases = [
            Lease(lease_id="L1", start_date=date(2024, 1, 1), monthly_rent="5000", unit_number="A1"),
            Lease(lease_id="L2", start_date=date(2024, 1, 1), monthly_rent="5000", unit_number="B2"),
        ]
        return ArrearsReport(invoices, leases)

    def test_only_overdue_unpaid_invoices(self, report):
        df = report.build(today=date(2024, 6, 1))
        assert list(df['invoice_id']) == ["b", "a"]
        assert list(df['bucket']) == ["90+", "0-30"]
        assert df.iloc[0]['outstanding'] == Decimal("500")
        assert df.iloc[0]['days_overdue'] == 92
        assert df.iloc[1]['unit_number'] == "A1"

    def test_ageing_summary_has_every_bucket(self, report):
        report.build(today=date(2024, 6, 1))
        assert report.ageing_summary() == {
            "0-30": Decimal("5000"),
            "31-60": Decimal("0"),
            "61-90": Decimal("0"),
            "90+": Decimal("500"),
        }

    def test_by_lease(self, report):
        report.build(today=date(2024, 6, 1))
        df = report.by_lease()
        assert list(df['lease_id']) == ["L1", "L2"]
        assert df.iloc[1]['water'] == Decimal("500")
        assert df.iloc[0]['rent'] == Decimal("5000")

    def test_empty_report(self):
        report = ArrearsReport([])
        assert report.build(today=date(2024, 6, 1)).empty
        assert report.by_lease().empty
