"""Gmail REST implementation of the MailboxGateway port."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from loguru import logger

from inboxtrack.application.ports.mailbox_gateway import MailboxGateway
from inboxtrack.domain.entities.mailbox_message import MailboxMessage, MessageAddedEvent, WatchRegistration
from inboxtrack.domain.errors import GatewayError
from inboxtrack.infrastructure.gmail.mapper import gmail_to_mailbox_message
from inboxtrack.infrastructure.gmail.oauth import refresh_access_token


class GmailGateway(MailboxGateway):
    """Talks to Gmail API v1 with a client built per call from an explicit credential."""

    BASE_URL = "https://gmail.googleapis.com/gmail/v1/users/me"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        topic_name: str = "",
        timeout: float = 20.0,
        watch_labels: tuple[str, ...] = ("INBOX", "SPAM"),
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.topic_name = topic_name
        self.timeout = timeout
        self.watch_labels = watch_labels
        self._transport = transport

    @asynccontextmanager
    async def _session(self, credential: str) -> AsyncIterator[httpx.AsyncClient]:
        """Authorized client for one gateway call; closed when the call ends."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            access_token = await refresh_access_token(
                client, credential, self.client_id, self.client_secret
            )
            client.headers["Authorization"] = f"Bearer {access_token}"
            yield client

    async def register_watch(self, credential: str) -> WatchRegistration:
        """Ask Gmail to push mailbox changes to the configured Pub/Sub topic."""
        if not self.topic_name:
            raise GatewayError("No Pub/Sub topic configured for Gmail watch")

        try:
            async with self._session(credential) as client:
                response = await client.post(
                    f"{self.BASE_URL}/watch",
                    json={"labelIds": list(self.watch_labels), "topicName": self.topic_name},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise GatewayError(f"Gmail watch failed: {e}") from e

        history_id = data.get("historyId")
        if not history_id:
            raise GatewayError("Gmail watch response missing historyId")

        logger.info(f"Gmail watch registered, historyId={history_id}")
        return WatchRegistration(history_id=str(history_id), expiration=data.get("expiration"))

    async def diff_since(self, credential: str, checkpoint: str) -> list[MessageAddedEvent]:
        """List messages added since ``checkpoint``, in provider order.

        Fails soft: an expired cursor or any provider error yields an empty
        list. History that has expired server-side cannot be recovered.
        """
        events: list[MessageAddedEvent] = []
        seen: set[str] = set()
        page_token: str | None = None

        try:
            async with self._session(credential) as client:
                while True:
                    params = {"startHistoryId": checkpoint, "historyTypes": "messageAdded"}
                    if page_token:
                        params["pageToken"] = page_token

                    response = await client.get(f"{self.BASE_URL}/history", params=params)
                    if response.status_code == 404:
                        logger.warning(
                            f"History cursor {checkpoint} expired; changes in the gap are lost"
                        )
                        return []
                    response.raise_for_status()
                    data = response.json()

                    for history in data.get("history") or []:
                        for added in history.get("messagesAdded") or []:
                            message = added.get("message") or {}
                            message_id = message.get("id")
                            if not message_id or message_id in seen:
                                continue
                            seen.add(message_id)
                            events.append(
                                MessageAddedEvent(message_id=message_id, thread_id=message.get("threadId"))
                            )

                    page_token = data.get("nextPageToken")
                    if not page_token:
                        break
        except (httpx.HTTPError, GatewayError) as e:
            logger.error(f"History fetch failed from cursor {checkpoint}: {e}")
            return []

        logger.debug(f"History diff from {checkpoint}: {len(events)} added messages")
        return events

    async def fetch_message(self, credential: str, message_id: str) -> MailboxMessage:
        """Fetch one message with a plaintext body."""
        try:
            async with self._session(credential) as client:
                response = await client.get(
                    f"{self.BASE_URL}/messages/{message_id}", params={"format": "full"}
                )
                response.raise_for_status()
                resource = response.json()
        except httpx.HTTPError as e:
            raise GatewayError(f"Failed to fetch message {message_id}: {e}") from e

        return gmail_to_mailbox_message(resource)


def gmail_gateway_from_settings(settings=None) -> GmailGateway:
    if settings is None:
        from inboxtrack.infrastructure.settings import get_settings
        settings = get_settings()
    return GmailGateway(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret.get_secret_value(),
        topic_name=settings.google_topic,
        timeout=settings.gmail_timeout_seconds,
    )
