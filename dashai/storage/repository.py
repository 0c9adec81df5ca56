"""
Repository pattern for data access.

Handles schema creation and the additive usage ledgers. Every ledger write is
a single store-level upsert; nothing here reads a value and writes it back.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from .db import get_connection
from .models import DailyCallCounter, DailyCostRecord, MonthlyCostRecord

# Costs are stored as integer nano-dollars so increments add exactly
_NANOS_PER_DOLLAR = Decimal("1000000000")


def to_nanos(amount: Decimal) -> int:
    """Convert a dollar amount to whole nano-dollars."""
    return int((amount * _NANOS_PER_DOLLAR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_nanos(nanos: int) -> Decimal:
    """Convert whole nano-dollars back to a dollar amount."""
    return Decimal(nanos) / _NANOS_PER_DOLLAR


class LedgerRepository:
    """Repository for the global call counter and the cost ledgers.

    Each method opens its own connection, so one instance can be shared by
    concurrent requests.
    """

    def __init__(self, db_path: str = ".dashai.db"):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def increment_call_counter(
        self,
        day_key: str,
        limit: int,
        now: datetime
    ) -> Tuple[bool, int]:
        """Count one call against the day's ceiling.

        Creates the day's counter at 1 on first use. When the stored count has
        already reached ``limit`` the row is left untouched.

        Args:
            day_key: UTC day key, "YYYY-MM-DD"
            limit: Daily call ceiling
            now: Timestamp stored as ``last_reset`` when the counter is created

        Returns:
            (accepted, count) where count is the post-increment value when
            accepted, or the unchanged stored value when rejected
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            rows = conn.execute("""
                INSERT INTO daily_call_counter (day_key, count, last_reset)
                VALUES (?, 1, ?)
                ON CONFLICT(day_key) DO UPDATE SET count = count + 1
                WHERE count < ?
                RETURNING count
            """, (day_key, now.isoformat(), limit)).fetchall()

            if rows:
                conn.commit()
                return True, rows[0][0]

            # Upsert was filtered out: the ceiling is already reached
            row = conn.execute(
                "SELECT count FROM daily_call_counter WHERE day_key = ?",
                (day_key,)
            ).fetchone()
            conn.commit()
            return False, row[0]
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_call_counter(self, day_key: str) -> Optional[DailyCallCounter]:
        """Get the call counter for a day, or None if no call was made that day."""
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT day_key, count, last_reset FROM daily_call_counter WHERE day_key = ?",
                (day_key,)
            ).fetchone()
            if row is None:
                return None
            return DailyCallCounter(
                day_key=row[0],
                count=row[1],
                last_reset=datetime.fromisoformat(row[2])
            )
        finally:
            conn.close()

    def add_cost(self, day_key: str, month_key: str, tokens: int, cost: Decimal) -> None:
        """Add one call's usage to the daily and monthly ledgers.

        Both upserts run in one transaction. A new day or month key creates a
        fresh row; existing rows are incremented, never overwritten.

        Args:
            day_key: UTC day key, "YYYY-MM-DD"
            month_key: UTC month key, "YYYY-MM"
            tokens: Tokens used by the call
            cost: Dollar cost of the call
        """
        nanos = to_nanos(cost)
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute("""
                INSERT INTO daily_cost (day_key, cost_nanos, tokens, calls)
                VALUES (?, ?, ?, 1)
                ON CONFLICT(day_key) DO UPDATE SET
                    cost_nanos = cost_nanos + excluded.cost_nanos,
                    tokens = tokens + excluded.tokens,
                    calls = calls + 1
            """, (day_key, nanos, tokens))
            conn.execute("""
                INSERT INTO monthly_cost (month_key, total_cost_nanos, total_tokens, call_count)
                VALUES (?, ?, ?, 1)
                ON CONFLICT(month_key) DO UPDATE SET
                    total_cost_nanos = total_cost_nanos + excluded.total_cost_nanos,
                    total_tokens = total_tokens + excluded.total_tokens,
                    call_count = call_count + 1
            """, (month_key, nanos, tokens))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_daily_cost(self, day_key: str) -> Optional[DailyCostRecord]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT day_key, cost_nanos, tokens, calls FROM daily_cost WHERE day_key = ?",
                (day_key,)
            ).fetchone()
            return _daily_cost(row) if row else None
        finally:
            conn.close()

    def get_monthly_cost(self, month_key: str) -> Optional[MonthlyCostRecord]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("""
                SELECT month_key, total_cost_nanos, total_tokens, call_count
                FROM monthly_cost WHERE month_key = ?
            """, (month_key,)).fetchone()
            return _monthly_cost(row) if row else None
        finally:
            conn.close()

    def fetch_daily_costs(self, limit: int = 30) -> List[DailyCostRecord]:
        """Fetch the most recent daily cost records, newest first."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT day_key, cost_nanos, tokens, calls
                FROM daily_cost ORDER BY day_key DESC LIMIT ?
            """, (limit,))
            return [_daily_cost(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def fetch_monthly_costs(self, limit: int = 12) -> List[MonthlyCostRecord]:
        """Fetch the most recent monthly cost records, newest first."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT month_key, total_cost_nanos, total_tokens, call_count
                FROM monthly_cost ORDER BY month_key DESC LIMIT ?
            """, (limit,))
            return [_monthly_cost(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def fetch_call_counters(self, limit: int = 30) -> List[DailyCallCounter]:
        """Fetch the most recent daily call counters, newest first."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT day_key, count, last_reset
                FROM daily_call_counter ORDER BY day_key DESC LIMIT ?
            """, (limit,))
            return [
                DailyCallCounter(
                    day_key=row[0],
                    count=row[1],
                    last_reset=datetime.fromisoformat(row[2])
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()


def _daily_cost(row) -> DailyCostRecord:
    return DailyCostRecord(
        day_key=row[0],
        cost=from_nanos(row[1]),
        tokens=row[2],
        calls=row[3]
    )


def _monthly_cost(row) -> MonthlyCostRecord:
    return MonthlyCostRecord(
        month_key=row[0],
        total_cost=from_nanos(row[1]),
        total_tokens=row[2],
        call_count=row[3]
    )


def initialize_schema(db_path: str = ".dashai.db") -> None:
    """Create the ledger and academic tables if they don't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS daily_call_counter (
                day_key TEXT PRIMARY KEY,
                count INTEGER NOT NULL CHECK (count >= 0),
                last_reset TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS daily_cost (
                day_key TEXT PRIMARY KEY,
                cost_nanos INTEGER NOT NULL DEFAULT 0,
                tokens INTEGER NOT NULL DEFAULT 0,
                calls INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS monthly_cost (
                month_key TEXT PRIMARY KEY,
                total_cost_nanos INTEGER NOT NULL DEFAULT 0,
                total_tokens INTEGER NOT NULL DEFAULT 0,
                call_count INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS caller_profile (
                caller_id TEXT PRIMARY KEY,
                display_name TEXT,
                timezone TEXT
            );

            CREATE TABLE IF NOT EXISTS semester (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                caller_id TEXT NOT NULL,
                name TEXT,
                is_active INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS course (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                semester_id INTEGER NOT NULL REFERENCES semester(id),
                course_code TEXT NOT NULL DEFAULT '',
                course_name TEXT NOT NULL DEFAULT '',
                schedule TEXT NOT NULL DEFAULT '[]'
            );

            CREATE TABLE IF NOT EXISTS schedule_block (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                semester_id INTEGER NOT NULL REFERENCES semester(id),
                day_of_week TEXT NOT NULL DEFAULT '',
                start_time TEXT NOT NULL DEFAULT '',
                end_time TEXT NOT NULL DEFAULT '',
                title TEXT NOT NULL DEFAULT '',
                building TEXT,
                room TEXT
            );

            CREATE TABLE IF NOT EXISTS calendar_event (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                semester_id INTEGER NOT NULL REFERENCES semester(id),
                event_date TEXT NOT NULL,
                title TEXT NOT NULL DEFAULT '',
                start_time TEXT,
                end_time TEXT
            );

            CREATE TABLE IF NOT EXISTS assignment (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                course_id INTEGER NOT NULL REFERENCES course(id),
                name TEXT NOT NULL,
                due_at TEXT,
                completed_at TEXT
            );
        """)
        conn.commit()
    finally:
        conn.close()
