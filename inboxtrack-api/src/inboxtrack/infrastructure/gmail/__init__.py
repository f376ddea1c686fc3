"""Gmail mailbox gateway."""

from inboxtrack.infrastructure.gmail.client import GmailGateway, gmail_gateway_from_settings

__all__ = [
    "GmailGateway",
    "gmail_gateway_from_settings",
]
