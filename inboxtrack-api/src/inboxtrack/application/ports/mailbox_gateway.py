from __future__ import annotations
from typing import Protocol

from inboxtrack.domain.entities.mailbox_message import MailboxMessage, MessageAddedEvent, WatchRegistration

class MailboxGateway(Protocol):
    # credential is the decrypted OAuth refresh token
    async def register_watch(self, credential: str) -> WatchRegistration: ...
    async def diff_since(self, credential: str, checkpoint: str) -> list[MessageAddedEvent]: ...
    async def fetch_message(self, credential: str, message_id: str) -> MailboxMessage: ...
