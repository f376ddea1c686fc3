from __future__ import annotations
from typing import Optional, Protocol

from inboxtrack.domain.models import ApplicationRecord

class ApplicationStore(Protocol):
    def list_for_user(self, user_id: str) -> list[ApplicationRecord]: ...
    def get(self, user_id: str, record_id: str) -> Optional[ApplicationRecord]: ...
    def find_by_thread(self, thread_id: str) -> Optional[ApplicationRecord]: ...
    # Both raise ReconciliationError on a thread_id uniqueness conflict
    def insert(self, record: ApplicationRecord) -> ApplicationRecord: ...
    def replace(self, record: ApplicationRecord) -> ApplicationRecord: ...
