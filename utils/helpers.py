"""
Helper utility functions
"""
from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional
import re

import pandas as pd
import yaml

from config import settings
from engine.calendar_math import coerce_date
from utils.errors import InvalidAmountError, InvalidDateInput

_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")

_DEFAULT_STATUS_MAPPINGS = {
    'paid_statuses': ['paid', 'verified', 'settled'],
    'unpaid_statuses': ['unpaid', 'overdue', 'partially_paid'],
    'void_statuses': ['void'],
}


def format_currency(amount, currency: str = settings.CURRENCY_CODE) -> str:
    """Format a number as currency"""
    value = to_decimal(amount)
    if value < 0:
        return f"-{currency} {abs(value):,.2f}"
    return f"{currency} {value:,.2f}"


def parse_date(value) -> Optional[date]:
    """
    Parse a date column value to a date object.

    Accepts dates, datetimes and ISO strings ("2025-12-24" or a timestamp such
    as "2025-12-24T10:12:33.000Z"; only the calendar date is kept). Aware
    datetimes are moved to UTC before taking the day. Empty values and pandas
    NaT return None; anything unparseable raises InvalidDateInput.
    """
    if value is None or value is pd.NaT:
        return None

    if isinstance(value, date):
        return coerce_date(value)

    text = str(value).strip()
    if not text:
        return None

    match = _ISO_DATE_PREFIX.match(text)
    if not match:
        raise InvalidDateInput(f"Unrecognised date value: {value!r}")

    try:
        return datetime.strptime(match.group(1), settings.DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDateInput(f"Invalid calendar date: {value!r}") from exc


def parse_amount(value) -> Decimal:
    """
    Parse a currency value to Decimal
    Examples: "5,000", "KES 5,000.50", "(1,200)", 4500.0
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, bool):
        raise InvalidAmountError(f"Boolean is not an amount: {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        text = str(value).strip()
        if text in ['', '-']:
            return Decimal("0")

        text = re.sub(r'(?i)kes|ksh|\$|,|\s', '', text)

        # Parentheses mean negative
        if text.startswith('(') and text.endswith(')'):
            text = '-' + text[1:-1]

        try:
            result = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(f"Unrecognised amount: {value!r}") from exc

    if not result.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {value!r}")
    return result


def to_decimal(value) -> Decimal:
    """Coerce a model amount to Decimal, rejecting NaN and infinity"""
    return parse_amount(value)


@lru_cache(maxsize=None)
def load_status_mappings(path: Optional[str] = None) -> Mapping[str, FrozenSet[str]]:
    """
    Load raw status → normalised status groups from YAML

    The result is cached and shared, so it is returned read-only.
    """
    mappings_path = Path(path) if path else Path(__file__).parent.parent / "config" / "status_mappings.yaml"
    try:
        with open(mappings_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
    except FileNotFoundError:
        loaded = {}

    mappings = {}
    for key, defaults in _DEFAULT_STATUS_MAPPINGS.items():
        values = loaded.get(key) or defaults
        mappings[key] = frozenset(str(v).lower().strip() for v in values)
    return MappingProxyType(mappings)


def normalize_invoice_status(raw, mappings: Optional[Mapping] = None):
    """
    Normalise a persisted invoice status (bool, text or missing) to InvoiceStatus
    """
    from models.billing import InvoiceStatus

    if isinstance(raw, InvoiceStatus):
        return raw
    if raw is None:
        return InvoiceStatus.UNKNOWN
    if isinstance(raw, bool):
        return InvoiceStatus.PAID if raw else InvoiceStatus.UNPAID

    mappings = mappings or load_status_mappings()
    text = str(raw).lower().strip()
    if text in mappings['paid_statuses']:
        return InvoiceStatus.PAID
    if text in mappings['unpaid_statuses']:
        return InvoiceStatus.UNPAID
    return InvoiceStatus.UNKNOWN


def is_void_status(raw, mappings: Optional[Mapping] = None) -> bool:
    """Check if a raw status marks the invoice as void"""
    if raw is None or isinstance(raw, bool):
        return False
    mappings = mappings or load_status_mappings()
    return str(raw).lower().strip() in mappings['void_statuses']


def get_month_label(month_date: date) -> str:
    """Get month label from date (e.g., 'February 2026')"""
    if not month_date:
        return ""
    return month_date.strftime(settings.MONTH_LABEL_FORMAT)
