"""SQLite infrastructure for accounts and applications."""

from inboxtrack.infrastructure.sqlite.client import SQLiteClient, get_sqlite_client

__all__ = [
    "SQLiteClient",
    "get_sqlite_client",
]
