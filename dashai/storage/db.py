"""
Database connection management.

Provides SQLite connections for the ledgers and academic records.
"""

import sqlite3
from pathlib import Path

# Seconds a connection waits on a locked database before raising
BUSY_TIMEOUT = 30.0


def get_connection(db_path: str = ".dashai.db") -> sqlite3.Connection:
    """Create and return a SQLite database connection with foreign keys enabled.

    The busy timeout lets concurrent writers queue behind each other instead
    of failing with "database is locked".

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection with foreign key constraints enabled
    """
    path = Path(db_path)
    conn = sqlite3.connect(str(path), timeout=BUSY_TIMEOUT)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn
