"""Unit tests for GmailGateway against a mocked Gmail API."""

import asyncio
import base64

import httpx
import pytest

from inboxtrack.domain.entities.mailbox_message import MessageAddedEvent
from inboxtrack.domain.errors import GatewayError
from inboxtrack.infrastructure.gmail.client import GmailGateway
from inboxtrack.infrastructure.gmail.oauth import TOKEN_URL

HISTORY_URL = "https://gmail.googleapis.com/gmail/v1/users/me/history"


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


class FakeGmail:
    """Routes requests like the Gmail API would, recording what it saw."""

    def __init__(self, history_pages=None, history_status=200, token_status=200):
        self.history_pages = history_pages or [{"historyId": "200"}]
        self.history_status = history_status
        self.token_status = token_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == TOKEN_URL:
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "ya29.access", "expires_in": 3599})

        assert request.headers["Authorization"] == "Bearer ya29.access"

        if request.url.path.endswith("/history"):
            if self.history_status != 200:
                return httpx.Response(self.history_status, json={"error": {"code": self.history_status}})
            page_token = request.url.params.get("pageToken")
            index = int(page_token) if page_token else 0
            return httpx.Response(200, json=self.history_pages[index])

        if request.url.path.endswith("/watch"):
            return httpx.Response(200, json={"historyId": "4242", "expiration": "1700000000000"})

        if "/messages/" in request.url.path:
            message_id = request.url.path.rsplit("/", 1)[-1]
            if message_id == "missing":
                return httpx.Response(404, json={"error": {"code": 404}})
            return httpx.Response(
                200,
                json={
                    "id": message_id,
                    "threadId": "thread-" + message_id,
                    "snippet": "snippet",
                    "payload": {
                        "mimeType": "multipart/alternative",
                        "headers": [
                            {"name": "Subject", "value": "Application received"},
                            {"name": "From", "value": "jobs@figma.com"},
                        ],
                        "parts": [
                            {"mimeType": "text/plain", "body": {"data": _b64("Thanks for applying")}},
                            {"mimeType": "text/html", "body": {"data": _b64("<p>Thanks</p>")}},
                        ],
                    },
                },
            )

        return httpx.Response(500)


def _gateway(fake: FakeGmail, topic: str = "projects/p/topics/gmail") -> GmailGateway:
    return GmailGateway(
        client_id="client-id",
        client_secret="client-secret",
        topic_name=topic,
        timeout=5.0,
        transport=httpx.MockTransport(fake),
    )


@pytest.mark.unit
def test_diff_pages_in_order_and_dedupes():
    fake = FakeGmail(
        history_pages=[
            {
                "history": [
                    {"id": "101", "messagesAdded": [{"message": {"id": "m1", "threadId": "t1"}}]},
                    {"id": "102", "messagesAdded": [{"message": {"id": "m2", "threadId": "t2"}}]},
                ],
                "nextPageToken": "1",
            },
            {
                "history": [
                    {"id": "103", "messagesAdded": [{"message": {"id": "m2", "threadId": "t2"}}]},
                    {"id": "104", "messages": [{"id": "m9"}]},
                    {"id": "105", "messagesAdded": [{"message": {"id": "m3"}}]},
                ],
            },
        ]
    )
    events = asyncio.run(_gateway(fake).diff_since("refresh", "100"))

    assert events == [
        MessageAddedEvent("m1", "t1"),
        MessageAddedEvent("m2", "t2"),
        MessageAddedEvent("m3", None),
    ]
    history_requests = [r for r in fake.requests if r.url.path.endswith("/history")]
    assert history_requests[0].url.params["startHistoryId"] == "100"
    assert history_requests[0].url.params["historyTypes"] == "messageAdded"
    assert history_requests[1].url.params["pageToken"] == "1"


@pytest.mark.unit
def test_diff_with_no_history_is_empty():
    assert asyncio.run(_gateway(FakeGmail()).diff_since("refresh", "100")) == []


@pytest.mark.unit
def test_expired_cursor_yields_empty_diff():
    fake = FakeGmail(history_status=404)
    assert asyncio.run(_gateway(fake).diff_since("refresh", "1")) == []


@pytest.mark.unit
@pytest.mark.parametrize("fake", [FakeGmail(history_status=503), FakeGmail(token_status=400)])
def test_provider_errors_yield_empty_diff(fake):
    assert asyncio.run(_gateway(fake).diff_since("refresh", "100")) == []


@pytest.mark.unit
def test_refresh_token_is_exchanged_per_call():
    fake = FakeGmail()
    gateway = _gateway(fake)

    asyncio.run(gateway.diff_since("refresh-A", "100"))
    asyncio.run(gateway.diff_since("refresh-B", "100"))

    token_bodies = [r.content.decode() for r in fake.requests if str(r.url) == TOKEN_URL]
    assert len(token_bodies) == 2
    assert "refresh_token=refresh-A" in token_bodies[0]
    assert "refresh_token=refresh-B" in token_bodies[1]
    assert "grant_type=refresh_token" in token_bodies[0]


@pytest.mark.unit
def test_fetch_message_prefers_plain_text():
    message = asyncio.run(_gateway(FakeGmail()).fetch_message("refresh", "m1"))

    assert message.message_id == "m1"
    assert message.thread_id == "thread-m1"
    assert message.subject == "Application received"
    assert message.sender == "jobs@figma.com"
    assert message.body_text == "Thanks for applying"


@pytest.mark.unit
def test_fetch_failure_raises_gateway_error():
    with pytest.raises(GatewayError):
        asyncio.run(_gateway(FakeGmail()).fetch_message("refresh", "missing"))


@pytest.mark.unit
def test_register_watch():
    fake = FakeGmail()
    registration = asyncio.run(_gateway(fake).register_watch("refresh"))

    assert registration.history_id == "4242"
    watch = next(r for r in fake.requests if r.url.path.endswith("/watch"))
    assert b"projects/p/topics/gmail" in watch.content


@pytest.mark.unit
def test_register_watch_requires_topic():
    with pytest.raises(GatewayError):
        asyncio.run(_gateway(FakeGmail(), topic="").register_watch("refresh"))
