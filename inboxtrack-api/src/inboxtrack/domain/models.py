"""Domain models for InboxTrack."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


def history_is_after(candidate: str, checkpoint: str) -> bool:
    """Whether history cursor ``candidate`` is strictly newer than ``checkpoint``.

    Gmail history ids are decimal strings; compare them numerically so that
    "10" sorts after "9". Anything non-numeric falls back to plain ordering
    by (length, text), which is equivalent for unpadded integers.
    """
    try:
        return int(candidate) > int(checkpoint)
    except (TypeError, ValueError):
        return (len(candidate), candidate) > (len(checkpoint), checkpoint)


class ApplicationStatus(str, Enum):
    """Tracked stages of a job application."""

    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    REJECTION = "Rejection"
    OFFER = "Offer"
    UNKNOWN = "Unknown"


class EventKind(str, Enum):
    """Kinds of change events pushed to live subscribers."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class EncryptedCredential(BaseModel):
    """An encrypted mailbox refresh token (hex-encoded IV and ciphertext)."""

    iv: str
    ciphertext: str


class UserAccount(BaseModel):
    """A user whose mailbox is being watched."""

    id: str = Field(default_factory=new_id)
    provider_account_id: str
    email: str
    name: str | None = None
    credential: EncryptedCredential | None = None
    last_history_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class ApplicationRecord(BaseModel):
    """A tracked job application belonging to one user."""

    id: str = Field(default_factory=new_id)
    user_id: str
    company_name: str
    job_title: str = "Unknown Role"
    status: ApplicationStatus = ApplicationStatus.APPLIED
    notes: str | None = None
    next_steps: str | None = None
    thread_id: str | None = None
    email_subject: str | None = None
    date_applied: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)

    @field_validator("company_name")
    @classmethod
    def _company_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("company_name must not be empty")
        return value


class ExtractionResult(BaseModel):
    """Structured fields pulled out of one email body."""

    company_name: str
    job_title: str = "Unknown Role"
    status: ApplicationStatus = ApplicationStatus.UNKNOWN
    next_steps: str = "None"


class ChangeEvent(BaseModel):
    """A change pushed to subscribers of one user."""

    kind: EventKind
    payload: dict[str, Any] = Field(default_factory=dict)
