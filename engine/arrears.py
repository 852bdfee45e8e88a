"""
Arrears ageing report
"""
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd

from config import settings
from engine.calendar_math import coerce_date
from models.billing import Invoice, Lease

ARREARS_COLUMNS = [
    'invoice_id',
    'lease_id',
    'unit_number',
    'invoice_type',
    'due_date',
    'days_overdue',
    'bucket',
    'outstanding',
]


def days_overdue(due_date: date, today: date) -> int:
    """Whole days past the due date, never negative"""
    delta = coerce_date(today, "today") - coerce_date(due_date, "due_date")
    return max(0, delta.days)


def ageing_bucket(days: int) -> str:
    """Ageing bucket label for a number of days overdue"""
    for upper_bound, label in settings.AGEING_BUCKETS:
        if days <= upper_bound:
            return label
    return settings.AGEING_OVERFLOW_BUCKET


def bucket_labels() -> List[str]:
    return [label for _, label in settings.AGEING_BUCKETS] + [settings.AGEING_OVERFLOW_BUCKET]


class ArrearsReport:
    """
    Overdue invoice ageing across a set of leases
    """

    def __init__(self, invoices: List[Invoice], leases: Optional[List[Lease]] = None):
        self.invoices = invoices
        self.leases_by_id = {lease.lease_id: lease for lease in (leases or [])}
        self.rows: List[dict] = []

    def build(self, today: date) -> pd.DataFrame:
        """
        Collect invoices due before ``today`` that are neither void nor paid
        and still have an outstanding amount
        """
        today = coerce_date(today, "today")
        self.rows = []

        for invoice in self.invoices:
            if invoice.is_void or invoice.is_settled:
                continue
            if invoice.due_date >= today:
                continue

            outstanding = invoice.outstanding
            if outstanding <= 0:
                continue

            days = days_overdue(invoice.due_date, today)
            lease = self.leases_by_id.get(invoice.lease_id)
            self.rows.append({
                'invoice_id': invoice.invoice_id,
                'lease_id': invoice.lease_id,
                'unit_number': lease.unit_number if lease else None,
                'invoice_type': invoice.invoice_type,
                'due_date': invoice.due_date,
                'days_overdue': days,
                'bucket': ageing_bucket(days),
                'outstanding': outstanding,
            })

        self.rows.sort(key=lambda r: (-r['days_overdue'], r['lease_id']))
        return pd.DataFrame(self.rows, columns=ARREARS_COLUMNS)

    def ageing_summary(self) -> Dict[str, Decimal]:
        """Outstanding totals per bucket; every bucket is present"""
        summary = {label: Decimal("0") for label in bucket_labels()}
        for row in self.rows:
            summary[row['bucket']] += row['outstanding']
        return summary

    def by_lease(self) -> pd.DataFrame:
        """Outstanding totals per lease, largest first"""
        columns = ['lease_id', 'unit_number', 'invoices', 'rent', 'water', 'total', 'max_days_overdue']
        totals = defaultdict(lambda: {
            'unit_number': None,
            'invoices': 0,
            'rent': Decimal("0"),
            'water': Decimal("0"),
            'total': Decimal("0"),
            'max_days_overdue': 0,
        })

        for row in self.rows:
            entry = totals[row['lease_id']]
            entry['unit_number'] = row['unit_number']
            entry['invoices'] += 1
            if row['invoice_type'] in ('rent', 'water'):
                entry[row['invoice_type']] += row['outstanding']
            entry['total'] += row['outstanding']
            entry['max_days_overdue'] = max(entry['max_days_overdue'], row['days_overdue'])

        if not totals:
            return pd.DataFrame(columns=columns)

        data = [{'lease_id': lease_id, **values} for lease_id, values in totals.items()]
        data.sort(key=lambda r: r['total'], reverse=True)
        return pd.DataFrame(data, columns=columns)
