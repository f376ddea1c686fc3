"""Infrastructure layer - external services, storage, and configuration."""

from inboxtrack.infrastructure.realtime.hub import SubscriptionHub, get_subscription_hub
from inboxtrack.infrastructure.settings import Settings, get_settings
from inboxtrack.infrastructure.sqlite.client import SQLiteClient, get_sqlite_client

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # SQLite
    "SQLiteClient",
    "get_sqlite_client",
    # Real-time
    "SubscriptionHub",
    "get_subscription_hub",
]
