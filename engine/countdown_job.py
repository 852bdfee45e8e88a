"""
Monthly rent countdown job.

Run once at the start of each month: every lease paid ahead by more than the
current month gives up one month of ``rent_paid_until``. A per-lease marker
of the last applied month makes repeated runs within a month no-ops.
"""
import logging
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional

from engine.calendar_math import coerce_date, start_of_month, utc_today
from engine.coverage import decrement_monthly_countdown
from models.billing import CountdownResult, Lease
from storage.audit_log import AuditLog
from storage.database import Database

logger = logging.getLogger(__name__)


class MonthlyCountdownJob:
    """
    Applies the monthly rent_paid_until countdown across leases
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        audit_log: Optional[AuditLog] = None,
        user: str = "system"
    ):
        self.database = database
        self.audit_log = audit_log
        self.user = user
        self._applied: Dict[str, date] = {}

    def last_applied_month(self, lease_id: str) -> Optional[date]:
        if self.database is not None and self.database.conn is not None:
            return self.database.get_applied_month(lease_id)
        return self._applied.get(lease_id)

    def _mark_applied(self, lease_id: str, month: date, old_date: date, new_date: date):
        self._applied[lease_id] = month
        if self.database is not None:
            self.database.mark_applied(lease_id, month, old_date, new_date)

    def run(self, leases: List[Lease], today: Optional[date] = None) -> CountdownResult:
        """
        Decrement rent_paid_until for leases paid more than one month ahead.

        Input leases are not modified; updated copies are returned in the result.
        """
        today = coerce_date(today, "today") if today is not None else utc_today()
        current_month = start_of_month(today)
        result = CountdownResult(execution_date=today, current_month=current_month)

        candidates = [
            lease for lease in leases
            if lease.is_billable and lease.rent_paid_until is not None
        ]
        result.total_leases = len(candidates)
        logger.info("Monthly rent countdown for %s: %d lease(s) with rent_paid_until",
                    today.isoformat(), len(candidates))

        for lease in candidates:
            old_date = lease.rent_paid_until
            if old_date <= today:
                continue

            if self.last_applied_month(lease.lease_id) == current_month:
                logger.info("Lease %s already counted down for %s, skipping",
                            lease.lease_id, current_month.isoformat())
                result.skipped.append(lease.lease_id)
                continue

            new_date = decrement_monthly_countdown(old_date, today)
            if new_date == old_date:
                logger.debug("Lease %s paid until current month, no change needed", lease.lease_id)
                continue

            self._mark_applied(lease.lease_id, current_month, old_date, new_date)
            result.updated_leases.append(replace(lease, rent_paid_until=new_date))
            result.updates.append({
                'lease_id': lease.lease_id,
                'old_date': old_date,
                'new_date': new_date,
                'months_reduced': 1,
            })
            if self.audit_log is not None:
                self.audit_log.log_countdown_update(lease.lease_id, old_date, new_date, self.user)
            logger.info("Updated lease %s: %s -> %s",
                        lease.lease_id, old_date.isoformat(), new_date.isoformat())

        if self.audit_log is not None:
            self.audit_log.log_countdown_run(
                execution_date=today,
                total_leases=result.total_leases,
                updated=result.updated,
                skipped=len(result.skipped),
                user=self.user,
            )
        logger.info("Monthly rent countdown complete: %d updated, %d skipped",
                    result.updated, len(result.skipped))
        return result
