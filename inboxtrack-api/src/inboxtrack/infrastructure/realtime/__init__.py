"""Real-time change fan-out."""

from inboxtrack.infrastructure.realtime.hub import SubscriptionHub, get_subscription_hub

__all__ = [
    "SubscriptionHub",
    "get_subscription_hub",
]
