"""Gmail Pub/Sub push endpoint."""

from __future__ import annotations

import hmac

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from loguru import logger

from inboxtrack.application.use_cases.process_notification import (
    GmailNotification,
    ProcessNotificationUseCase,
    decode_push_envelope,
    get_process_notification_use_case,
)
from inboxtrack.infrastructure.settings import Settings, get_settings


router = APIRouter()


# ============================================================================
# Background Task
# ============================================================================


async def _process_notification(
    use_case: ProcessNotificationUseCase, notification: GmailNotification
) -> None:
    """Background task to process one notification after it was acknowledged."""
    try:
        outcome = await use_case.process(notification)
        logger.info(
            f"Notification {notification.history_id} for {notification.email_address} -> {outcome.status.value}",
            extra={"outcome": outcome},
        )
    except Exception as e:
        logger.exception(f"Failed to process notification for {notification.email_address}: {e}")


# ============================================================================
# Endpoint
# ============================================================================


def _token_ok(settings: Settings, token: str | None) -> bool:
    if settings.webhook_token is None:
        return True
    expected = settings.webhook_token.get_secret_value()
    return bool(token) and hmac.compare_digest(token, expected)


@router.post("/webhook/gmail")
async def receive_gmail_push(
    request: Request,
    background_tasks: BackgroundTasks,
    token: str | None = Query(default=None),
    settings: Settings = Depends(get_settings),
    use_case: ProcessNotificationUseCase = Depends(get_process_notification_use_case),
) -> dict:
    """
    Receive a Gmail change notification from Pub/Sub.

    Always answers 200: Pub/Sub retries anything else, and processing
    failures must not be retried. Work happens in a background task after
    the response is sent.
    """
    if not _token_ok(settings, token):
        logger.warning("Gmail push with bad or missing token, ignoring")
        return {"status": "ignored"}

    try:
        envelope = await request.json()
    except ValueError:
        logger.warning("Gmail push body is not JSON, ignoring")
        return {"status": "ignored"}

    notification = decode_push_envelope(envelope)
    if notification is None:
        logger.warning("Malformed Gmail push envelope, ignoring")
        return {"status": "ignored"}

    background_tasks.add_task(_process_notification, use_case, notification)
    logger.debug(f"Queued notification {notification.pubsub_message_id} for {notification.email_address}")

    return {"status": "accepted"}
