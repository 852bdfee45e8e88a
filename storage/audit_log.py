"""
Audit trail logging
"""
from datetime import date, datetime
from typing import Optional
import json
from pathlib import Path


class AuditLog:
    """
    Maintains an audit trail of ledger-changing actions
    """

    def __init__(self, log_path: str = "data/audit_log.jsonl"):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_action(
        self,
        action: str,
        user: str,
        details: dict,
        timestamp: Optional[datetime] = None
    ):
        """Log an action to the audit trail"""
        if timestamp is None:
            timestamp = datetime.now()

        log_entry = {
            'timestamp': timestamp.isoformat(),
            'action': action,
            'user': user,
            'details': details
        }

        # Append to log file
        with open(self.log_path, 'a') as f:
            f.write(json.dumps(log_entry, default=_json_default) + '\n')

    def log_countdown_update(
        self,
        lease_id: str,
        old_date: date,
        new_date: date,
        user: str
    ):
        """Log a rent_paid_until decrement"""
        self.log_action(
            action='countdown_update',
            user=user,
            details={
                'lease_id': lease_id,
                'old_date': old_date,
                'new_date': new_date,
                'months_reduced': 1
            }
        )

    def log_countdown_run(
        self,
        execution_date: date,
        total_leases: int,
        updated: int,
        skipped: int,
        user: str
    ):
        """Log a completed countdown run"""
        self.log_action(
            action='countdown_run',
            user=user,
            details={
                'execution_date': execution_date,
                'total_leases': total_leases,
                'updated': updated,
                'skipped': skipped
            }
        )

    def get_recent_logs(self, limit: int = 100) -> list:
        """Get recent log entries"""
        if not self.log_path.exists():
            return []

        logs = []
        with open(self.log_path, 'r') as f:
            for line in f:
                if line.strip():
                    logs.append(json.loads(line))

        # Return most recent entries
        return logs[-limit:]


def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
