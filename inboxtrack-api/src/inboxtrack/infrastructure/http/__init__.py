"""HTTP and WebSocket routers."""

from inboxtrack.infrastructure.http.gmail_webhook import router as gmail_webhook_router
from inboxtrack.infrastructure.http.realtime import router as realtime_router

__all__ = [
    "gmail_webhook_router",
    "realtime_router",
]
