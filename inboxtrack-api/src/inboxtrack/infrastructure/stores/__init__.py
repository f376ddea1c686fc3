"""Store implementations."""

from inboxtrack.infrastructure.stores.sqlite_account_store import SQLiteAccountStore
from inboxtrack.infrastructure.stores.sqlite_application_store import SQLiteApplicationStore

__all__ = [
    "SQLiteAccountStore",
    "SQLiteApplicationStore",
]
