"""Use case for processing one Gmail push notification end to end."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, field_validator

from inboxtrack.application.ai.classifier import RelevanceClassifier
from inboxtrack.application.ai.extractor import DataExtractor
from inboxtrack.application.locks import KeyedLock
from inboxtrack.application.ports.account_store import AccountStore
from inboxtrack.application.ports.mailbox_gateway import MailboxGateway
from inboxtrack.application.ports.notifier import ChangeNotifier
from inboxtrack.application.use_cases.reconcile_application import ApplicationReconciler
from inboxtrack.domain.entities.mailbox_message import MessageAddedEvent
from inboxtrack.domain.errors import CryptoError, GatewayError, ReconciliationError
from inboxtrack.domain.models import UserAccount, history_is_after
from inboxtrack.domain.results import Failed, Ok, Skip
from inboxtrack.infrastructure.security.token_vault import TokenVault

MessageResult = Literal["created", "updated", "skipped", "failed"]


@dataclass(frozen=True)
class GmailNotification:
    """Decoded Pub/Sub payload: which mailbox changed and its new cursor."""

    email_address: str
    history_id: str
    pubsub_message_id: Optional[str] = None


class PushMessage(BaseModel):
    """The ``message`` part of a Pub/Sub push request."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    data: str = Field(min_length=1)
    message_id: Optional[str] = Field(default=None, alias="messageId")
    publish_time: Optional[str] = Field(default=None, alias="publishTime")


class PushEnvelope(BaseModel):
    """Pub/Sub push request body."""

    model_config = ConfigDict(extra="ignore")

    message: PushMessage
    subscription: Optional[str] = None


class GmailPushData(BaseModel):
    """Gmail's payload inside ``message.data``."""

    model_config = ConfigDict(extra="ignore")

    email_address: str = Field(alias="emailAddress")
    history_id: Union[StrictStr, StrictInt] = Field(alias="historyId")

    @field_validator("email_address")
    @classmethod
    def _address_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("emailAddress must not be empty")
        return value

    @field_validator("history_id")
    @classmethod
    def _history_as_text(cls, value: Union[str, int]) -> str:
        value = str(value).strip()
        if not value:
            raise ValueError("historyId must not be empty")
        return value


def decode_push_envelope(envelope: Any) -> Optional[GmailNotification]:
    """Decode a Pub/Sub push envelope; None when it is malformed.

    Envelope shape: {"message": {"data": base64(JSON{emailAddress, historyId}), "messageId": ...}}
    """
    try:
        push = PushEnvelope.model_validate(envelope)
    except ValidationError:
        return None

    data = push.message.data
    try:
        decoded = json.loads(base64.b64decode(data + "=" * (-len(data) % 4), altchars=b"-_"))
        payload = GmailPushData.model_validate(decoded)
    except (binascii.Error, ValueError):
        # ValidationError is a ValueError too
        return None

    return GmailNotification(
        email_address=payload.email_address,
        history_id=str(payload.history_id),
        pubsub_message_id=push.message.message_id,
    )


class NotificationStatus(str, Enum):
    ABORTED = "aborted"
    BOOTSTRAPPED = "bootstrapped"
    STALE = "stale"
    PROCESSED = "processed"


@dataclass
class NotificationOutcome:
    status: NotificationStatus
    user_id: Optional[str] = None
    reason: Optional[str] = None
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    checkpoint: Optional[str] = None

    def count(self, result: MessageResult) -> None:
        setattr(self, result, getattr(self, result) + 1)


class ProcessNotificationUseCase:
    """
    Process one mailbox change notification.

    Flow:
    1. Resolve the account by mailbox address (abort if missing or no credential)
    2. Decrypt the stored refresh token
    3. First notification for the account: adopt its cursor and stop
    4. Cursor not newer than the checkpoint: duplicate or stale, stop
    5. Diff history since the checkpoint
    6. Per added message, in provider order:
       fetch -> classify -> extract -> reconcile -> publish
    7. Advance the checkpoint once every message has been attempted

    Failures inside step 6 are contained to that message. Work for the same
    user is serialized; different users run concurrently.
    """

    def __init__(
        self,
        accounts: AccountStore,
        vault: TokenVault,
        gateway: MailboxGateway,
        classifier: RelevanceClassifier,
        extractor: DataExtractor,
        reconciler: ApplicationReconciler,
        notifier: ChangeNotifier,
        locks: KeyedLock | None = None,
    ):
        self.accounts = accounts
        self.vault = vault
        self.gateway = gateway
        self.classifier = classifier
        self.extractor = extractor
        self.reconciler = reconciler
        self.notifier = notifier
        self.locks = locks or KeyedLock()

    async def process(self, notification: GmailNotification) -> NotificationOutcome:
        logger.info(
            f"Notification for {notification.email_address}, new historyId {notification.history_id}"
        )

        account = await asyncio.to_thread(self.accounts.find_by_email, notification.email_address)
        if account is None:
            logger.error(f"No account for mailbox {notification.email_address}")
            return NotificationOutcome(NotificationStatus.ABORTED, reason="account_not_found")

        async with self.locks.hold(account.id):
            # Re-read under the lock so the checkpoint reflects the previous batch
            account = await asyncio.to_thread(self.accounts.get, account.id) or account
            return await self._process_locked(account, notification)

    async def _process_locked(self, account: UserAccount, notification: GmailNotification) -> NotificationOutcome:
        if account.credential is None:
            logger.error(f"Account {account.id} has no stored credential")
            return NotificationOutcome(NotificationStatus.ABORTED, account.id, reason="no_credential")

        try:
            credential = self.vault.decrypt(account.credential)
        except CryptoError as e:
            logger.error(f"Cannot decrypt credential for account {account.id}: {e}")
            return NotificationOutcome(NotificationStatus.ABORTED, account.id, reason="credential_unreadable")

        checkpoint = account.last_history_id
        if not checkpoint:
            await asyncio.to_thread(self.accounts.advance_checkpoint, account.id, notification.history_id)
            logger.info(f"Bootstrapped checkpoint for {account.email} at {notification.history_id}")
            return NotificationOutcome(
                NotificationStatus.BOOTSTRAPPED, account.id, checkpoint=notification.history_id
            )

        if not history_is_after(notification.history_id, checkpoint):
            logger.info(
                f"Ignoring notification {notification.history_id} for {account.email}: "
                f"checkpoint already at {checkpoint}"
            )
            return NotificationOutcome(NotificationStatus.STALE, account.id, checkpoint=checkpoint)

        try:
            events = await self.gateway.diff_since(credential, checkpoint)
        except GatewayError as e:
            logger.error(f"History diff failed for {account.email}: {e}")
            events = []

        outcome = NotificationOutcome(NotificationStatus.PROCESSED, account.id)
        for event in events:
            try:
                result = await self._process_message(account, credential, event)
            except Exception as e:
                logger.exception(f"Unexpected failure on message {event.message_id}: {e}")
                result = "failed"
            outcome.count(result)

        await asyncio.to_thread(self.accounts.advance_checkpoint, account.id, notification.history_id)
        outcome.checkpoint = notification.history_id
        logger.info(
            f"Batch done for {account.email}: {len(events)} messages, "
            f"{outcome.created} created, {outcome.updated} updated, "
            f"{outcome.skipped} skipped, {outcome.failed} failed; checkpoint -> {notification.history_id}"
        )
        return outcome

    async def _process_message(
        self, account: UserAccount, credential: str, event: MessageAddedEvent
    ) -> MessageResult:
        try:
            email = await self.gateway.fetch_message(credential, event.message_id)
        except GatewayError as e:
            logger.error(f"Failed to fetch message {event.message_id}: {e}")
            return "failed"

        relevance = await self.classifier.classify(email.subject, email.sender)
        if isinstance(relevance, Failed):
            logger.warning(f"Classification failed, skipping {email.subject[:50]!r}: {relevance.reason}")
            return "failed"
        if isinstance(relevance, Ok) and not relevance.value:
            logger.debug(f"Skipping: {email.subject[:50]}")
            return "skipped"

        logger.info(f"Job-related email: {email.subject[:50]}")

        extraction = await self.extractor.extract(email.body_text)
        if isinstance(extraction, Skip):
            logger.debug(f"Nothing to extract from {email.subject[:50]!r}: {extraction.reason}")
            return "skipped"
        if isinstance(extraction, Failed):
            logger.warning(f"Extraction failed for {email.subject[:50]!r}: {extraction.reason}")
            return "failed"

        try:
            reconciled = await self.reconciler.reconcile(
                account.id,
                extraction.value,
                thread_id=email.thread_id or event.thread_id,
                subject=email.subject,
            )
        except ReconciliationError as e:
            logger.error(f"Could not store application from {event.message_id}: {e}")
            return "failed"

        self.notifier.publish(account.id, reconciled.kind, reconciled.record.model_dump(mode="json"))
        return reconciled.kind.value


# Singleton instance; the lock table must be shared by every request
_use_case: ProcessNotificationUseCase | None = None


def get_process_notification_use_case() -> ProcessNotificationUseCase:
    """Get or create the fully wired use case from settings."""
    global _use_case
    if _use_case is None:
        from inboxtrack.application.ai.llm import create_llm
        from inboxtrack.infrastructure.gmail.client import gmail_gateway_from_settings
        from inboxtrack.infrastructure.realtime.hub import get_subscription_hub
        from inboxtrack.infrastructure.security.token_vault import token_vault_from_settings
        from inboxtrack.infrastructure.settings import get_settings
        from inboxtrack.infrastructure.sqlite.client import get_sqlite_client
        from inboxtrack.infrastructure.stores import SQLiteAccountStore, SQLiteApplicationStore

        settings = get_settings()
        sqlite = get_sqlite_client()
        llm = create_llm(settings)

        _use_case = ProcessNotificationUseCase(
            accounts=SQLiteAccountStore(sqlite),
            vault=token_vault_from_settings(settings),
            gateway=gmail_gateway_from_settings(settings),
            classifier=RelevanceClassifier(llm, timeout=settings.llm_timeout_seconds),
            extractor=DataExtractor(
                llm,
                timeout=settings.llm_timeout_seconds,
                max_chars=settings.extraction_max_chars,
            ),
            reconciler=ApplicationReconciler(SQLiteApplicationStore(sqlite), threshold=settings.match_threshold),
            notifier=get_subscription_hub(),
        )
    return _use_case
