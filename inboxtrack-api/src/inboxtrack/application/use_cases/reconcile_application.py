"""Create-or-update an application record from one extraction."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from inboxtrack.application.matching.company_match import DEFAULT_THRESHOLD, find_best_match
from inboxtrack.application.ports.application_store import ApplicationStore
from inboxtrack.domain.models import (
    ApplicationRecord,
    ApplicationStatus,
    EventKind,
    ExtractionResult,
    utcnow,
)


@dataclass(frozen=True)
class ReconcileOutcome:
    kind: EventKind
    record: ApplicationRecord


class ApplicationReconciler:
    """Ties an extraction to one of the user's records, or creates a new one.

    Lookup order:
    1. A record of this user already tagged with the source thread id
       (redelivery of the same message updates instead of duplicating)
    2. The closest fuzzy company-name match within the threshold
    3. Otherwise a new record

    Store conflicts surface as ReconciliationError from the store.
    """

    def __init__(self, store: ApplicationStore, threshold: float = DEFAULT_THRESHOLD):
        self.store = store
        self.threshold = threshold

    async def reconcile(
        self,
        user_id: str,
        extraction: ExtractionResult,
        thread_id: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> ReconcileOutcome:
        # sqlite calls are blocking; keep them off the event loop
        return await asyncio.to_thread(self._reconcile, user_id, extraction, thread_id, subject)

    def _reconcile(
        self,
        user_id: str,
        extraction: ExtractionResult,
        thread_id: Optional[str],
        subject: Optional[str],
    ) -> ReconcileOutcome:
        target: Optional[ApplicationRecord] = None

        if thread_id:
            owner = self.store.find_by_thread(thread_id)
            if owner is not None and owner.user_id == user_id:
                target = owner
            elif owner is not None:
                # Thread ids are unique store-wide; never steal another user's
                logger.warning(f"Thread {thread_id} already belongs to another user; not tagging")
                thread_id = None

        if target is None:
            records = self.store.list_for_user(user_id)
            target = find_best_match(extraction.company_name, records, self.threshold)

        if target is not None:
            return ReconcileOutcome(EventKind.UPDATED, self._update(target, extraction, thread_id))
        return ReconcileOutcome(EventKind.CREATED, self._create(user_id, extraction, thread_id, subject))

    def _update(
        self,
        record: ApplicationRecord,
        extraction: ExtractionResult,
        thread_id: Optional[str],
    ) -> ApplicationRecord:
        changes = {
            "next_steps": extraction.next_steps,
            "last_updated": utcnow(),
        }
        # An unreadable status should not erase a known one
        if extraction.status != ApplicationStatus.UNKNOWN or record.status == ApplicationStatus.UNKNOWN:
            changes["status"] = extraction.status
        if record.job_title == "Unknown Role" and extraction.job_title != "Unknown Role":
            changes["job_title"] = extraction.job_title
        if thread_id:
            changes["thread_id"] = thread_id

        saved = self.store.replace(record.model_copy(update=changes))
        logger.info(f"Updated application: {saved.company_name} -> {saved.status.value}")
        return saved

    def _create(
        self,
        user_id: str,
        extraction: ExtractionResult,
        thread_id: Optional[str],
        subject: Optional[str],
    ) -> ApplicationRecord:
        record = ApplicationRecord(
            user_id=user_id,
            company_name=extraction.company_name,
            job_title=extraction.job_title,
            status=extraction.status,
            next_steps=extraction.next_steps,
            thread_id=thread_id,
            email_subject=subject,
        )
        saved = self.store.insert(record)
        logger.info(f"Created application: {saved.company_name} ({saved.job_title})")
        return saved
