"""Unit tests for Pub/Sub push envelope decoding."""

import base64
import json

import pytest

from conftest import push_envelope
from inboxtrack.application.use_cases.process_notification import GmailNotification, decode_push_envelope


def _with_data(data) -> dict:
    return {"message": {"data": data, "messageId": "m"}}


@pytest.mark.unit
def test_decodes_valid_envelope():
    notification = decode_push_envelope(push_envelope("jane@example.com", "12345", message_id="abc"))

    assert notification == GmailNotification("jane@example.com", "12345", "abc")


@pytest.mark.unit
def test_numeric_history_id_becomes_string():
    assert decode_push_envelope(push_envelope("jane@example.com", 987)).history_id == "987"


@pytest.mark.unit
def test_unpadded_urlsafe_data_is_accepted():
    raw = json.dumps({"emailAddress": "a@b.com", "historyId": "1"}).encode()
    data = base64.urlsafe_b64encode(raw).decode().rstrip("=")
    assert decode_push_envelope(_with_data(data)).email_address == "a@b.com"


@pytest.mark.unit
@pytest.mark.parametrize(
    "envelope",
    [
        {},
        {"message": None},
        {"message": "text"},
        _with_data(None),
        _with_data(""),
        _with_data("%%%not-base64%%%"),
        _with_data(base64.b64encode(b"not json").decode()),
        _with_data(base64.b64encode(b"[1, 2]").decode()),
        _with_data(base64.b64encode(json.dumps({"historyId": "1"}).encode()).decode()),
        _with_data(base64.b64encode(json.dumps({"emailAddress": "a@b.com"}).encode()).decode()),
        _with_data(base64.b64encode(json.dumps({"emailAddress": "a@b.com", "historyId": True}).encode()).decode()),
        ["not", "a", "mapping"],
    ],
)
def test_malformed_envelopes_are_dropped(envelope):
    assert decode_push_envelope(envelope) is None


@pytest.mark.unit
def test_extra_fields_are_ignored_and_snake_case_id_accepted():
    envelope = push_envelope("jane@example.com", "77")
    envelope["message"]["attributes"] = {"source": "gmail"}
    envelope["message"]["message_id"] = envelope["message"].pop("messageId")

    notification = decode_push_envelope(envelope)

    assert notification == GmailNotification("jane@example.com", "77", "pubsub-1")


@pytest.mark.unit
def test_address_is_trimmed():
    assert decode_push_envelope(push_envelope("  jane@example.com ", "1")).email_address == "jane@example.com"
