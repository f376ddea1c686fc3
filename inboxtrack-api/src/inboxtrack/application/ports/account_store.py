from __future__ import annotations
from typing import Optional, Protocol

from inboxtrack.domain.models import UserAccount

class AccountStore(Protocol):
    def get(self, user_id: str) -> Optional[UserAccount]: ...
    def find_by_email(self, email: str) -> Optional[UserAccount]: ...
    def upsert(self, account: UserAccount) -> UserAccount: ...
    # Returns False when the write would move the checkpoint backward
    def advance_checkpoint(self, user_id: str, history_id: str) -> bool: ...
