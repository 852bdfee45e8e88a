"""
Database persistence layer for monthly countdown markers (DuckDB)
"""
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

import duckdb

from config import settings

logger = logging.getLogger(__name__)


class Database:
    """
    Records the last month the rent countdown was applied to each lease
    """

    def __init__(self, db_path: str = None):
        self.db_path = db_path or settings.DATABASE_PATH
        self.conn = None

        if settings.USE_DATABASE:
            self._init_database()

    def _init_database(self):
        """Initialize database and create tables"""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(self.db_path)
        self._create_tables()
        logger.debug("Countdown marker store ready at %s", self.db_path)

    def _create_tables(self):
        """Create database tables"""
        if not self.conn:
            return

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS countdown_marks (
                lease_id VARCHAR PRIMARY KEY,
                applied_month DATE,
                old_date DATE,
                new_date DATE,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def get_applied_month(self, lease_id: str) -> Optional[date]:
        """Month the countdown was last applied to a lease, if ever"""
        if not self.conn:
            return None

        row = self.conn.execute(
            "SELECT applied_month FROM countdown_marks WHERE lease_id = ?",
            [lease_id]
        ).fetchone()
        return row[0] if row else None

    def mark_applied(self, lease_id: str, applied_month: date, old_date: date, new_date: date):
        """Record that the countdown ran for a lease in the given month"""
        if not self.conn:
            return

        self.conn.execute("""
            INSERT OR REPLACE INTO countdown_marks
            (lease_id, applied_month, old_date, new_date)
            VALUES (?, ?, ?, ?)
        """, [lease_id, applied_month, old_date, new_date])

    def get_marks(self) -> List[dict]:
        """All countdown markers ordered by lease"""
        if not self.conn:
            return []

        rows = self.conn.execute("""
            SELECT lease_id, applied_month, old_date, new_date
            FROM countdown_marks
            ORDER BY lease_id
        """).fetchall()
        return [
            {
                'lease_id': lease_id,
                'applied_month': applied_month,
                'old_date': old_date,
                'new_date': new_date,
            }
            for lease_id, applied_month, old_date, new_date in rows
        ]

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None
