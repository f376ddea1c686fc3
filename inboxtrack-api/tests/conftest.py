"""Shared fixtures and fakes for InboxTrack tests."""

from __future__ import annotations

import asyncio
import base64
import json

import pytest
from langchain_core.messages import AIMessage

from inboxtrack.domain.entities.mailbox_message import MailboxMessage, MessageAddedEvent, WatchRegistration
from inboxtrack.domain.errors import GatewayError
from inboxtrack.domain.models import UserAccount
from inboxtrack.infrastructure.security.token_vault import TokenVault
from inboxtrack.infrastructure.sqlite.client import SQLiteClient
from inboxtrack.infrastructure.stores import SQLiteAccountStore, SQLiteApplicationStore

TEST_KEY = b"0123456789abcdef0123456789abcdef"
REFRESH_TOKEN = "1//refresh-token-for-tests"


class ScriptedLLM:
    """Chat model stand-in: replies with the first rule whose key appears in the prompt.

    A reply that is an Exception is raised instead; a float sleeps that many
    seconds first (to exercise timeouts).
    """

    def __init__(self, rules: list[tuple[str, object]]):
        self.rules = rules
        self.prompts: list[str] = []

    async def ainvoke(self, messages):
        prompt = messages[-1].content
        self.prompts.append(prompt)
        for key, reply in self.rules:
            if key in prompt:
                if isinstance(reply, float):
                    await asyncio.sleep(reply)
                    return AIMessage(content="true")
                if isinstance(reply, Exception):
                    raise reply
                return AIMessage(content=reply)
        raise AssertionError(f"no scripted reply for prompt: {prompt[:80]!r}")


class FakeGateway:
    """In-memory mailbox: a fixed diff plus fetchable messages."""

    def __init__(
        self,
        events: list[MessageAddedEvent] | None = None,
        messages: dict[str, MailboxMessage] | None = None,
        watch_history_id: str = "500",
    ):
        self.events = events or []
        self.messages = messages or {}
        self.watch_history_id = watch_history_id
        self.diff_calls: list[str] = []
        self.fetched: list[str] = []
        self.credentials: list[str] = []

    async def register_watch(self, credential: str) -> WatchRegistration:
        self.credentials.append(credential)
        return WatchRegistration(history_id=self.watch_history_id)

    async def diff_since(self, credential: str, checkpoint: str) -> list[MessageAddedEvent]:
        self.credentials.append(credential)
        self.diff_calls.append(checkpoint)
        return list(self.events)

    async def fetch_message(self, credential: str, message_id: str) -> MailboxMessage:
        self.credentials.append(credential)
        self.fetched.append(message_id)
        if message_id not in self.messages:
            raise GatewayError(f"message {message_id} not found")
        return self.messages[message_id]


class RecordingNotifier:
    def __init__(self):
        self.events: list[tuple[str, str, dict]] = []

    def publish(self, user_id, kind, payload) -> None:
        self.events.append((user_id, kind.value, payload))


def push_envelope(email: str, history_id: str | int, message_id: str = "pubsub-1") -> dict:
    data = base64.b64encode(json.dumps({"emailAddress": email, "historyId": history_id}).encode()).decode()
    return {
        "message": {"data": data, "messageId": message_id, "publishTime": "2026-10-19T10:00:00Z"},
        "subscription": "projects/test/subscriptions/gmail-push",
    }


def extraction_json(company: str, title: str = "Backend Engineer", status: str = "Applied", next_steps: str = "None") -> str:
    return json.dumps({"companyName": company, "jobTitle": title, "status": status, "nextSteps": next_steps})


@pytest.fixture
def vault() -> TokenVault:
    return TokenVault(TEST_KEY)


@pytest.fixture
def sqlite_client(tmp_path) -> SQLiteClient:
    return SQLiteClient(tmp_path / "inboxtrack.db")


@pytest.fixture
def account_store(sqlite_client) -> SQLiteAccountStore:
    return SQLiteAccountStore(sqlite_client)


@pytest.fixture
def application_store(sqlite_client) -> SQLiteApplicationStore:
    return SQLiteApplicationStore(sqlite_client)


@pytest.fixture
def make_account(account_store, vault):
    def _make(email: str = "jane@example.com", history_id: str | None = "100", with_credential: bool = True) -> UserAccount:
        account = account_store.upsert(
            UserAccount(
                provider_account_id=f"google-{email}",
                email=email,
                name="Jane Doe",
                credential=vault.encrypt(REFRESH_TOKEN) if with_credential else None,
            )
        )
        if history_id is not None:
            account_store.advance_checkpoint(account.id, history_id)
        return account_store.get(account.id)

    return _make
