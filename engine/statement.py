"""
Statement period filtering and aggregation engine
"""
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd

from config import settings
from engine.calendar_math import add_months, coerce_date, start_of_month, utc_today
from engine.ledger import KIND_ORDER
from models.billing import StatementSummary, StatementView, Transaction
from utils.validations import validate_statement_period


class StatementEngine:
    """
    Restricts a running-balance ledger to a look-back period and summarises it
    """

    def __init__(self, transactions: List[Transaction]):
        self.transactions = sorted(
            transactions,
            key=lambda t: (t.posted_at, KIND_ORDER[t.kind])
        )

    @staticmethod
    def cutoff_date(period: str, now: Optional[date] = None) -> Optional[date]:
        """First calendar day included by a period filter; None for 'all'"""
        validate_statement_period(period)
        months = settings.STATEMENT_PERIODS[period]
        if months is None:
            return None
        today = coerce_date(now, "now") if now is not None else utc_today()
        return add_months(today, -months)

    def filter(self, period: str = "all", now: Optional[date] = None) -> StatementView:
        """
        Transactions posted on or after the period cutoff, with opening and
        closing balances and charge / payment totals
        """
        cutoff = self.cutoff_date(period, now)

        if cutoff is None:
            filtered = list(self.transactions)
            before = []
        else:
            filtered = [t for t in self.transactions if t.posted_at >= cutoff]
            before = [t for t in self.transactions if t.posted_at < cutoff]

        opening_balance = before[-1].balance_after if before else Decimal("0")
        closing_balance = filtered[-1].balance_after if filtered else opening_balance

        total_charges = sum((t.amount for t in filtered if t.amount > 0), Decimal("0"))
        total_payments = sum((abs(t.amount) for t in filtered if t.amount < 0), Decimal("0"))

        return StatementView(
            cutoff=cutoff,
            transactions=filtered,
            period_start=filtered[0].posted_at if filtered else None,
            period_end=filtered[-1].posted_at if filtered else None,
            summary=StatementSummary(
                opening_balance=opening_balance,
                closing_balance=closing_balance,
                total_charges=total_charges,
                total_payments=total_payments,
            ),
        )

    def monthly_totals(self) -> Dict[date, Dict[str, Decimal]]:
        """
        Aggregate transactions by month
        Returns: {month: {'charges': amount, 'payments': amount, 'net': amount, 'closing_balance': amount}}
        """
        totals = defaultdict(lambda: {
            'charges': Decimal("0"),
            'payments': Decimal("0"),
            'net': Decimal("0"),
            'closing_balance': Decimal("0"),
        })

        for txn in self.transactions:
            month = start_of_month(txn.posted_at)
            if txn.amount > 0:
                totals[month]['charges'] += txn.amount
            else:
                totals[month]['payments'] += abs(txn.amount)
            totals[month]['net'] += txn.amount
            totals[month]['closing_balance'] = txn.balance_after

        return dict(totals)

    def monthly_totals_df(self) -> pd.DataFrame:
        """Monthly totals as a DataFrame sorted by month"""
        columns = ['month', 'charges', 'payments', 'net', 'closing_balance']
        totals = self.monthly_totals()
        if not totals:
            return pd.DataFrame(columns=columns)

        data = [{'month': month, **values} for month, values in sorted(totals.items())]
        return pd.DataFrame(data, columns=columns)
