from __future__ import annotations
from typing import Any, Protocol

from inboxtrack.domain.models import EventKind

class ChangeNotifier(Protocol):
    # Fire-and-forget; never raises
    def publish(self, user_id: str, kind: EventKind, payload: dict[str, Any]) -> None: ...
