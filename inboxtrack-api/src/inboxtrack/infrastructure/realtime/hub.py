"""In-process per-user publish/subscribe for live change events."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger

from inboxtrack.application.ports.notifier import ChangeNotifier
from inboxtrack.domain.errors import NotifyError
from inboxtrack.domain.models import ChangeEvent, EventKind


class SubscriptionHub(ChangeNotifier):
    """Fans change events out to the subscribers currently joined for a user.

    Delivery is best effort: each subscriber has a bounded queue, a full
    queue drops the event for that subscriber, and nothing is kept for
    subscribers that join later.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[asyncio.Queue[ChangeEvent]]] = {}

    @asynccontextmanager
    async def subscribe(self, user_id: str) -> AsyncIterator[asyncio.Queue[ChangeEvent]]:
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.setdefault(user_id, set()).add(queue)
        logger.debug(f"Subscriber joined for user {user_id}")
        try:
            yield queue
        finally:
            queues = self._subscribers.get(user_id)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    del self._subscribers[user_id]
            logger.debug(f"Subscriber left for user {user_id}")

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, ()))

    def publish(self, user_id: str, kind: EventKind, payload: dict[str, Any]) -> None:
        try:
            self._deliver(user_id, ChangeEvent(kind=kind, payload=payload))
        except Exception as e:
            error = NotifyError(f"publish to {user_id} failed: {e}")
            logger.error(str(error))

    def _deliver(self, user_id: str, event: ChangeEvent) -> None:
        queues = list(self._subscribers.get(user_id, ()))
        if not queues:
            logger.debug(f"No live subscribers for {user_id}; {event.kind.value} event not delivered")
            return

        for queue in queues:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Subscriber queue full for {user_id}; dropping {event.kind.value} event")


# Singleton instance
_hub: SubscriptionHub | None = None


def get_subscription_hub() -> SubscriptionHub:
    """Get or create the process-wide hub."""
    global _hub
    if _hub is None:
        from inboxtrack.infrastructure.settings import get_settings
        _hub = SubscriptionHub(queue_size=get_settings().subscriber_queue_size)
    return _hub
