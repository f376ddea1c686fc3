"""Unit tests for Gmail message mapping."""

import base64

import pytest

from inboxtrack.infrastructure.gmail.mapper import extract_body_text, gmail_to_mailbox_message, html_to_text


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


def _part(mime: str, text: str) -> dict:
    return {"mimeType": mime, "body": {"data": _b64(text)}}


@pytest.mark.unit
def test_prefers_plain_over_html():
    payload = {
        "mimeType": "multipart/alternative",
        "parts": [_part("text/html", "<p>HTML version</p>"), _part("text/plain", "Plain version")],
    }
    assert extract_body_text(payload) == "Plain version"


@pytest.mark.unit
def test_finds_plain_in_nested_multipart():
    payload = {
        "mimeType": "multipart/mixed",
        "parts": [
            {
                "mimeType": "multipart/alternative",
                "parts": [_part("text/plain", "Nested plain"), _part("text/html", "<b>x</b>")],
            },
            {"mimeType": "application/pdf", "filename": "resume.pdf", "body": {"attachmentId": "a1"}},
        ],
    }
    assert extract_body_text(payload) == "Nested plain"


@pytest.mark.unit
def test_falls_back_to_html_as_text():
    payload = {
        "mimeType": "multipart/alternative",
        "parts": [_part("text/html", "<html><style>p{}</style><p>Hi&nbsp;there</p><p>Next&amp;steps</p></html>")],
    }
    assert extract_body_text(payload) == "Hi there\nNext&steps"


@pytest.mark.unit
def test_single_part_body():
    assert extract_body_text(_part("text/plain", "  Single body \n")) == "Single body"


@pytest.mark.unit
def test_no_body_is_empty():
    payload = {"mimeType": "multipart/mixed", "parts": [{"mimeType": "image/png", "body": {"attachmentId": "x"}}]}
    assert extract_body_text(payload) == ""
    assert extract_body_text({}) == ""


@pytest.mark.unit
def test_html_to_text_strips_scripts():
    assert html_to_text("<script>alert(1)</script>Hello<br>World") == "Hello\nWorld"


@pytest.mark.unit
def test_html_to_text_ignores_angle_bracket_in_attribute():
    assert html_to_text('<p title="a > b">Hello</p>') == "Hello"


@pytest.mark.unit
def test_html_to_text_drops_comments_and_conditional_blocks():
    markup = (
        "<!-- <p>hidden</p> -->Visible"
        "<!--[if mso]><table><tr><td>Outlook only</td></tr></table><![endif]-->"
    )
    assert html_to_text(markup) == "Visible"


@pytest.mark.unit
def test_html_to_text_keeps_inline_text_on_one_line():
    markup = "<div><p>Hi <b>Jane</b>, thanks for applying.</p><p>Next: <a href='#'>book a slot</a></p></div>"
    assert html_to_text(markup) == "Hi Jane, thanks for applying.\nNext: book a slot"


@pytest.mark.unit
def test_resource_mapping_with_headers():
    resource = {
        "id": "m1",
        "threadId": "t1",
        "snippet": "We&#39;d like to invite you",
        "payload": {
            "mimeType": "text/plain",
            "headers": [
                {"name": "subject", "value": "Interview invite - Acme Corp"},
                {"name": "From", "value": "Acme Recruiting <jobs@acme.com>"},
            ],
            "body": {"data": _b64("Please pick a slot.")},
        },
    }
    message = gmail_to_mailbox_message(resource)

    assert message.message_id == "m1"
    assert message.thread_id == "t1"
    assert message.subject == "Interview invite - Acme Corp"
    assert message.sender == "Acme Recruiting <jobs@acme.com>"
    assert message.body_text == "Please pick a slot."
    assert message.snippet == "We'd like to invite you"


@pytest.mark.unit
def test_missing_headers_default():
    message = gmail_to_mailbox_message({"id": "m2", "payload": {}})

    assert message.subject == "No Subject"
    assert message.sender == "Unknown"
    assert message.thread_id is None
    assert message.body_text == ""
