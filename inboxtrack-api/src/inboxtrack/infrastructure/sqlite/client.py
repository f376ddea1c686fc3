"""SQLite client for account and application storage."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from loguru import logger


class SQLiteClient:
    """Owns the database file, the schema and connection handling."""

    def __init__(self, db_path: str | Path = "/app/data/inboxtrack.db"):
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.connection() as conn:
            conn.executescript("""
                PRAGMA journal_mode=WAL;

                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    provider_account_id TEXT NOT NULL UNIQUE,
                    email TEXT NOT NULL COLLATE NOCASE,
                    name TEXT,
                    credential_iv TEXT,
                    credential_ciphertext TEXT,
                    last_history_id TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_accounts_email
                    ON accounts(email);

                CREATE TABLE IF NOT EXISTS applications (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    company_name TEXT NOT NULL,
                    job_title TEXT NOT NULL,
                    status TEXT NOT NULL CHECK(status IN ('Applied','Interviewing','Rejection','Offer','Unknown')),
                    notes TEXT,
                    next_steps TEXT,
                    thread_id TEXT UNIQUE,
                    email_subject TEXT,
                    date_applied TEXT NOT NULL,
                    last_updated TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_applications_user
                    ON applications(user_id, last_updated);
            """)
            logger.info(f"SQLite database initialized at {self.db_path}")

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ping(self) -> None:
        with self.connection() as conn:
            conn.execute("SELECT 1")


# Singleton instance
_client: SQLiteClient | None = None


def get_sqlite_client(db_path: str | None = None) -> SQLiteClient:
    """Get or create SQLite client singleton."""
    global _client
    if _client is None:
        from inboxtrack.infrastructure.settings import get_settings
        _client = SQLiteClient(db_path=db_path or get_settings().sqlite_db_path)
    return _client
