"""SQLite implementation of ApplicationStore."""

from __future__ import annotations

import sqlite3
from typing import Optional

from loguru import logger

from inboxtrack.application.ports.application_store import ApplicationStore
from inboxtrack.domain.errors import ReconciliationError
from inboxtrack.domain.models import ApplicationRecord
from inboxtrack.infrastructure.sqlite.client import SQLiteClient

_COLUMNS = (
    "id", "user_id", "company_name", "job_title", "status", "notes", "next_steps",
    "thread_id", "email_subject", "date_applied", "last_updated",
)


def _to_row(record: ApplicationRecord) -> tuple:
    data = record.model_dump(mode="json")
    return tuple(data[c] for c in _COLUMNS)


def _from_row(row: sqlite3.Row) -> ApplicationRecord:
    return ApplicationRecord.model_validate(dict(row))


class SQLiteApplicationStore(ApplicationStore):
    """Application records keyed by id, scoped by user, unique by thread id."""

    def __init__(self, client: SQLiteClient):
        self.client = client

    def list_for_user(self, user_id: str) -> list[ApplicationRecord]:
        """All records of one user, most recently updated first."""
        with self.client.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM applications WHERE user_id = ? ORDER BY last_updated DESC",
                (user_id,),
            ).fetchall()
        return [_from_row(r) for r in rows]

    def get(self, user_id: str, record_id: str) -> Optional[ApplicationRecord]:
        with self.client.connection() as conn:
            row = conn.execute(
                "SELECT * FROM applications WHERE user_id = ? AND id = ?",
                (user_id, record_id),
            ).fetchone()
        return _from_row(row) if row else None

    def find_by_thread(self, thread_id: str) -> Optional[ApplicationRecord]:
        with self.client.connection() as conn:
            row = conn.execute(
                "SELECT * FROM applications WHERE thread_id = ?",
                (thread_id,),
            ).fetchone()
        return _from_row(row) if row else None

    def insert(self, record: ApplicationRecord) -> ApplicationRecord:
        placeholders = ",".join("?" * len(_COLUMNS))
        try:
            with self.client.connection() as conn:
                conn.execute(
                    f"INSERT INTO applications ({','.join(_COLUMNS)}) VALUES ({placeholders})",
                    _to_row(record),
                )
        except sqlite3.IntegrityError as e:
            raise ReconciliationError(f"Insert conflict for {record.company_name}: {e}") from e
        logger.debug(f"Inserted application {record.id} for user {record.user_id}")
        return record

    def replace(self, record: ApplicationRecord) -> ApplicationRecord:
        """Full-document replace of an existing record."""
        assignments = ",".join(f"{c} = ?" for c in _COLUMNS[1:])
        row = _to_row(record)
        try:
            with self.client.connection() as conn:
                cursor = conn.execute(
                    f"UPDATE applications SET {assignments} WHERE id = ? AND user_id = ?",
                    (*row[1:], record.id, record.user_id),
                )
                if cursor.rowcount == 0:
                    raise ReconciliationError(f"Application {record.id} no longer exists")
        except sqlite3.IntegrityError as e:
            raise ReconciliationError(f"Update conflict for {record.company_name}: {e}") from e
        logger.debug(f"Replaced application {record.id} for user {record.user_id}")
        return record
