"""
Configuration settings for the rent ledger engine
"""
import os
from typing import Dict, List, Tuple

# Application Settings
APP_TITLE = "Rent Ledger Engine"
CURRENCY_CODE = "KES"

# Payment / Prepayment Thresholds
AMOUNT_TOLERANCE = 0.05  # 5% variance allowed against the expected amount
PAID_RATIO = 0.999  # total_paid >= amount * PAID_RATIO counts as settled
LARGE_PREPAYMENT_MONTHS = 6
VERY_LARGE_PREPAYMENT_MONTHS = 12

# Coverage Scanning
COVERAGE_SCAN_MONTHS = int(os.getenv("RENT_LEDGER_SCAN_MONTHS", "240"))
BILLABLE_LEASE_STATUSES: List[str] = ["active", "pending"]

# Arrears Ageing Buckets (upper bound in days, label)
AGEING_BUCKETS: List[Tuple[int, str]] = [
    (30, "0-30"),
    (60, "31-60"),
    (90, "61-90"),
]
AGEING_OVERFLOW_BUCKET = "90+"

# Statement Period Filters (months to look back; None means everything)
STATEMENT_PERIODS: Dict[str, int] = {
    "month": 1,
    "3months": 3,
    "6months": 6,
    "year": 12,
    "all": None,
}

# Database Settings
USE_DATABASE = os.getenv("RENT_LEDGER_USE_DATABASE", "true").lower() == "true"
DATABASE_PATH = os.getenv("RENT_LEDGER_DB_PATH", "data/countdown.duckdb")
AUDIT_LOG_PATH = os.getenv("RENT_LEDGER_AUDIT_LOG", "data/audit_log.jsonl")

# Date Format
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
MONTH_LABEL_FORMAT = "%B %Y"
