"""Domain models and entities."""

from inboxtrack.domain.models import (
    ApplicationRecord,
    ApplicationStatus,
    ChangeEvent,
    EncryptedCredential,
    EventKind,
    ExtractionResult,
    UserAccount,
)

__all__ = [
    "ApplicationRecord",
    "ApplicationStatus",
    "ChangeEvent",
    "EncryptedCredential",
    "EventKind",
    "ExtractionResult",
    "UserAccount",
]
