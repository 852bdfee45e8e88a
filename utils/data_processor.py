"""
Normalisation of raw lease / invoice / payment rows into ledger models.

Rows arrive from the database layer as dicts (or DataFrames of them) with
inconsistent column names, string amounts and a status column stored as a
boolean, free text or nothing at all. Everything is cleaned up here so the
engine only ever sees typed models.
"""
from typing import Dict, List, Mapping, Optional
import pandas as pd

from models.billing import Invoice, Lease, Payment
from utils.helpers import (
    is_void_status,
    load_status_mappings,
    normalize_invoice_status,
    parse_amount,
    parse_date,
)


# Column alias → canonical name mappings
_COLUMN_MAP = {
    "lease id": "lease_id",
    "invoice id": "invoice_id",
    "payment id": "payment_id",
    "start date": "start_date",
    "lease start": "start_date",
    "end date": "end_date",
    "lease end": "end_date",
    "rent": "monthly_rent",
    "monthly rent": "monthly_rent",
    "paid until": "rent_paid_until",
    "rent paid until": "rent_paid_until",
    "amount": "amount",
    "amount paid": "amount_paid",
    "due date": "due_date",
    "period start": "period_start",
    "invoice type": "invoice_type",
    "status text": "status_text",
    "total paid": "total_paid",
    "payment date": "payment_date",
    "months paid": "months_paid",
    "months covered": "months_covered",
    "payment method": "payment_method",
    "unit number": "unit_number",
}


def _first(row: Dict, *keys):
    """First non-empty value among ``keys``"""
    for key in keys:
        value = row.get(key)
        if value is None:
            continue
        if not isinstance(value, (str, bool)) and pd.isna(value):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


class DataProcessor:
    """
    Converts raw database rows into Lease, Invoice and Payment models.
    """

    def __init__(self, status_mappings: Optional[Mapping] = None):
        self.status_mappings = status_mappings or load_status_mappings()

    def normalize_columns(self, df: Optional[pd.DataFrame]) -> pd.DataFrame:
        """
        Map common column aliases to standard names.

        Args:
            df: Input DataFrame. None raises ValueError.

        Returns:
            DataFrame with renamed columns.
        """
        if df is None:
            raise ValueError("normalize_columns received None; expected a DataFrame.")
        if df.empty:
            return df.copy()

        rename_map: dict[str, str] = {}
        for col in df.columns:
            lower = str(col).lower().strip().replace("_", " ")
            if lower in _COLUMN_MAP:
                canonical = _COLUMN_MAP[lower]
                # Only rename if the canonical name isn't already a column
                if canonical not in df.columns:
                    rename_map[col] = canonical
        return df.rename(columns=rename_map)

    # ------------------------------------------------------------------
    # Row converters
    # ------------------------------------------------------------------

    def lease_from_row(self, row: Dict) -> Lease:
        return Lease(
            lease_id=str(_first(row, "lease_id", "id")),
            start_date=parse_date(_first(row, "start_date")),
            end_date=parse_date(_first(row, "end_date")),
            monthly_rent=parse_amount(_first(row, "monthly_rent")),
            rent_paid_until=parse_date(_first(row, "rent_paid_until")),
            status=str(_first(row, "status") or "active"),
            tenant_id=_first(row, "tenant_user_id", "tenant_id"),
            unit_number=_first(row, "unit_number"),
        )

    def invoice_from_row(self, row: Dict) -> Invoice:
        """
        status_text wins over the legacy status column when both are present
        """
        raw_status = _first(row, "status_text", "status")
        return Invoice(
            invoice_id=str(_first(row, "invoice_id", "id")),
            lease_id=str(_first(row, "lease_id")),
            amount=parse_amount(_first(row, "amount")),
            due_date=parse_date(_first(row, "due_date")),
            invoice_type=str(_first(row, "invoice_type") or "rent"),
            period_start=parse_date(_first(row, "period_start")),
            status=normalize_invoice_status(raw_status, self.status_mappings),
            description=_first(row, "description"),
            total_paid=parse_amount(_first(row, "total_paid")),
            is_void=is_void_status(raw_status, self.status_mappings),
            months_covered=int(_first(row, "months_covered") or 0),
        )

    def payment_from_row(self, row: Dict) -> Payment:
        invoice_id = _first(row, "invoice_id")
        return Payment(
            payment_id=str(_first(row, "payment_id", "id")),
            invoice_id=str(invoice_id) if invoice_id is not None else None,
            amount_paid=parse_amount(_first(row, "amount_paid", "amount")),
            payment_date=parse_date(_first(row, "payment_date")),
            created_at=parse_date(_first(row, "created_at")),
            verified=bool(_first(row, "verified")),
            months_paid=int(_first(row, "months_paid") or 1),
            method=_first(row, "payment_method", "method"),
            reference=_first(row, "mpesa_receipt_number", "bank_reference_number", "reference"),
        )

    # ------------------------------------------------------------------
    # DataFrame converters
    # ------------------------------------------------------------------

    def leases_from_frame(self, df: pd.DataFrame) -> List[Lease]:
        return [self.lease_from_row(row) for row in self._records(df)]

    def invoices_from_frame(self, df: pd.DataFrame) -> List[Invoice]:
        return [self.invoice_from_row(row) for row in self._records(df)]

    def payments_from_frame(self, df: pd.DataFrame) -> List[Payment]:
        return [self.payment_from_row(row) for row in self._records(df)]

    def _records(self, df: pd.DataFrame) -> List[Dict]:
        normalized = self.normalize_columns(df)
        if normalized.empty:
            return []
        return normalized.to_dict(orient="records")
