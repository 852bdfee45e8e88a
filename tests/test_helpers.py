"""
Tests for utils.helpers, utils.validations and the model invariants.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pandas as pd
import pytest

from models.billing import Invoice, InvoiceStatus, Lease, Payment
from utils.errors import InvalidAmountError, InvalidDateInput, InvalidLeaseError
from utils.helpers import (
    format_currency,
    load_status_mappings,
    normalize_invoice_status,
    parse_amount,
    parse_date,
)
from utils.validations import validate_months_paid, validate_statement_period


class TestParseAmount:
    @pytest.mark.parametrize("raw,expected", [
        ("5,000", Decimal("5000")),
        ("KES 5,000.50", Decimal("5000.50")),
        ("(1,200)", Decimal("-1200")),
        (4500.0, Decimal("4500.0")),
        (None, Decimal("0")),
        ("", Decimal("0")),
    ])
    def test_parsing(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "NaN", float("nan"), float("inf"), True])
    def test_invalid(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount(raw)


class TestParseDate:
    def test_iso_date(self):
        assert parse_date("2024-02-29") == date(2024, 2, 29)

    def test_timestamp_keeps_calendar_day(self):
        assert parse_date("2025-12-24T10:12:33.000Z") == date(2025, 12, 24)

    def test_datetime_passthrough(self):
        assert parse_date(datetime(2024, 1, 2, 8, 30)) == date(2024, 1, 2)

    def test_blank(self):
        assert parse_date("  ") is None
        assert parse_date(None) is None
        assert parse_date(pd.NaT) is None

    def test_aware_datetime_uses_utc_day(self):
        nairobi = timezone(timedelta(hours=3))
        assert parse_date(datetime(2024, 3, 1, 1, 0, tzinfo=nairobi)) == date(2024, 2, 29)
        assert parse_date(pd.Timestamp("2024-03-01T01:00:00+03:00")) == date(2024, 2, 29)

    @pytest.mark.parametrize("raw", ["2023-02-29", "Feb 2024", "31/01/2024"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidDateInput):
            parse_date(raw)


class TestStatusNormalisation:
    @pytest.mark.parametrize("raw,expected", [
        (True, InvoiceStatus.PAID),
        (False, InvoiceStatus.UNPAID),
        (None, InvoiceStatus.UNKNOWN),
        ("Paid", InvoiceStatus.PAID),
        ("verified", InvoiceStatus.PAID),
        ("settled", InvoiceStatus.PAID),
        ("partially_paid", InvoiceStatus.UNPAID),
        ("something-else", InvoiceStatus.UNKNOWN),
        (InvoiceStatus.UNPAID, InvoiceStatus.UNPAID),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_invoice_status(raw) == expected

    def test_missing_mapping_file_uses_defaults(self, tmp_path):
        mappings = load_status_mappings(str(tmp_path / "missing.yaml"))
        assert mappings['paid_statuses'] == {'paid', 'verified', 'settled'}

    def test_custom_mapping_file(self, tmp_path):
        path = tmp_path / "mappings.yaml"
        path.write_text("paid_statuses:\n  - cleared\n")
        mappings = load_status_mappings(str(path))
        assert normalize_invoice_status("cleared", mappings) == InvoiceStatus.PAID
        assert normalize_invoice_status("paid", mappings) == InvoiceStatus.UNKNOWN

    def test_cached_mappings_are_read_only(self):
        mappings = load_status_mappings()
        with pytest.raises(AttributeError):
            mappings['paid_statuses'].add('refunded')
        with pytest.raises(TypeError):
            mappings['paid_statuses'] = {'refunded'}
        assert normalize_invoice_status("refunded") == InvoiceStatus.UNKNOWN


class TestFormatting:
    def test_format_currency(self):
        assert format_currency(Decimal("1234.5")) == "KES 1,234.50"
        assert format_currency(Decimal("-1234.5")) == "-KES 1,234.50"


class TestValidations:
    def test_months_paid(self):
        assert validate_months_paid(3) == 3
        assert validate_months_paid(" 3 ") == 3
        assert validate_months_paid(2.0) == 2
        for bad in (0, -1, 1.5, "x", True):
            with pytest.raises(ValueError):
                validate_months_paid(bad)

    def test_months_paid_messages(self):
        with pytest.raises(ValueError, match="whole number"):
            validate_months_paid("3.5")
        with pytest.raises(ValueError, match="whole number"):
            validate_months_paid(1.5)
        with pytest.raises(ValueError, match="at least 1"):
            validate_months_paid("0")

    def test_statement_period(self):
        assert validate_statement_period("year") == "year"
        with pytest.raises(ValueError):
            validate_statement_period("decade")


class TestModelInvariants:
    def test_lease_end_before_start(self):
        with pytest.raises(InvalidLeaseError):
            Lease(lease_id="l", start_date=date(2024, 5, 1), end_date=date(2024, 4, 30))

    def test_lease_rejects_string_dates(self):
        with pytest.raises(InvalidDateInput):
            Lease(lease_id="l", start_date="2024-05-01")

    def test_payment_months_clamped(self):
        payment = Payment(payment_id="p", invoice_id=None, amount_paid="100", months_paid=0)
        assert payment.months_paid == 1

    def test_invoice_settled_by_total_paid(self):
        invoice = Invoice(invoice_id="i", lease_id="l", amount="5000", due_date=date(2024, 1, 1),
                          total_paid="4999.5")
        assert invoice.is_settled
        assert invoice.outstanding == Decimal("0.5")

    def test_period_month_prefers_period_start(self):
        invoice = Invoice(invoice_id="i", lease_id="l", amount="5000", due_date=date(2024, 1, 28),
                          period_start=date(2024, 2, 1))
        assert invoice.period_month == date(2024, 2, 1)
