from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class MessageAddedEvent:
    # One "messageAdded" entry from a history diff
    message_id: str
    thread_id: Optional[str] = None

@dataclass(frozen=True)
class MailboxMessage:
    message_id: str
    thread_id: Optional[str]
    subject: str
    sender: str
    body_text: str
    snippet: str = ""

@dataclass(frozen=True)
class WatchRegistration:
    history_id: str
    expiration: Optional[str] = None
