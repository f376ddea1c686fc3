from __future__ import annotations
import base64
import html
import re
from typing import Any, Mapping, Optional

from bs4 import BeautifulSoup, Comment

from inboxtrack.domain.entities.mailbox_message import MailboxMessage

_DROPPED_TAGS = ["script", "style", "head", "title", "noscript"]
_BLOCK_TAGS = ["p", "div", "tr", "li", "table", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"]
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def decode_body_data(data: str) -> str:
    # Gmail returns base64url without padding
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8", errors="replace")


def html_to_text(markup: str) -> str:
    soup = BeautifulSoup(markup, "html.parser")

    for element in soup(_DROPPED_TAGS):
        element.decompose()
    # Covers Outlook conditional blocks (<!--[if mso]> ... <![endif]-->)
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.append("\n")

    lines = [" ".join(line.split()) for line in soup.get_text().splitlines()]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def _find_part(part: Mapping[str, Any], mime_type: str) -> Optional[str]:
    # Depth-first walk of the MIME tree, first matching leaf with data wins
    if part.get("mimeType") == mime_type:
        data = (part.get("body") or {}).get("data")
        if data:
            return decode_body_data(data)
    for child in part.get("parts") or []:
        found = _find_part(child, mime_type)
        if found is not None:
            return found
    return None


def extract_body_text(payload: Mapping[str, Any]) -> str:
    """Prefer text/plain; fall back to HTML reduced to text; else empty."""
    if not payload:
        return ""

    plain = _find_part(payload, "text/plain")
    if plain is not None:
        return plain.strip()

    markup = _find_part(payload, "text/html")
    if markup is not None:
        return html_to_text(markup)

    # Single-part message with an unusual type but inline data
    data = (payload.get("body") or {}).get("data")
    if data and not payload.get("parts"):
        return decode_body_data(data).strip()
    return ""


def _header(headers: list[Mapping[str, str]], name: str) -> Optional[str]:
    wanted = name.lower()
    for h in headers:
        if (h.get("name") or "").lower() == wanted:
            return h.get("value")
    return None


def gmail_to_mailbox_message(resource: Mapping[str, Any]) -> MailboxMessage:
    payload = resource.get("payload") or {}
    headers = payload.get("headers") or []

    return MailboxMessage(
        message_id=resource.get("id") or "",
        thread_id=resource.get("threadId") or None,
        subject=(_header(headers, "Subject") or "No Subject").strip(),
        sender=(_header(headers, "From") or "Unknown").strip(),
        body_text=extract_body_text(payload),
        snippet=html.unescape(resource.get("snippet") or ""),
    )
