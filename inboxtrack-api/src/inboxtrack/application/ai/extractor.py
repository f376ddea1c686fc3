"""Turn an email body into structured application fields."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from inboxtrack.application.ai.llm import message_text
from inboxtrack.domain.errors import ExtractionError
from inboxtrack.domain.models import ApplicationStatus, ExtractionResult
from inboxtrack.domain.results import Failed, Ok, Skip, StageResult

DEFAULT_MAX_CHARS = 5000

EXTRACT_PROMPT = '''Extract job application details from this email text into a JSON object.

Email Body:
"""
{body}
"""

Return a JSON object with these keys:
- companyName (string, use "Unknown" if missing)
- jobTitle (string, use "Unknown" if missing)
- status (Enum: "Applied", "Interviewing", "Rejection", "Offer")
- nextSteps (string, brief summary of action items or "None")

Return ONLY the raw JSON string. No markdown formatting.'''

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

_STATUS_ALIASES = {
    "applied": ApplicationStatus.APPLIED,
    "application received": ApplicationStatus.APPLIED,
    "interviewing": ApplicationStatus.INTERVIEWING,
    "interview": ApplicationStatus.INTERVIEWING,
    "rejection": ApplicationStatus.REJECTION,
    "rejected": ApplicationStatus.REJECTION,
    "offer": ApplicationStatus.OFFER,
    "offered": ApplicationStatus.OFFER,
}

_MISSING = {"", "unknown", "n/a", "none", "null"}


def normalize_status(value: object) -> ApplicationStatus:
    if not isinstance(value, str):
        return ApplicationStatus.UNKNOWN
    return _STATUS_ALIASES.get(value.strip().lower(), ApplicationStatus.UNKNOWN)


class _ExtractionPayload(BaseModel):
    """Shape of the JSON the model is asked to return."""

    model_config = ConfigDict(extra="ignore")

    company_name: str | None = Field(default=None, alias="companyName")
    job_title: str | None = Field(default=None, alias="jobTitle")
    status: Any = None
    next_steps: str | None = Field(default=None, alias="nextSteps")


def parse_extraction(text: str) -> ExtractionResult | None:
    """Parse model output. Raises ExtractionError when it is not the expected JSON.

    Returns None when the JSON is well formed but names no company.
    """
    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"extraction reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError(f"extraction reply is a {type(data).__name__}, expected an object")

    try:
        payload = _ExtractionPayload.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(f"extraction reply has wrong field types: {e.error_count()} errors") from e

    company = (payload.company_name or "").strip()
    if company.lower() in _MISSING:
        return None

    job_title = (payload.job_title or "").strip()
    next_steps = (payload.next_steps or "").strip()
    return ExtractionResult(
        company_name=company,
        job_title=job_title if job_title.lower() not in _MISSING else "Unknown Role",
        status=normalize_status(payload.status),
        next_steps=next_steps or "None",
    )


class DataExtractor:
    def __init__(self, llm: BaseChatModel, timeout: float = 30.0, max_chars: int = DEFAULT_MAX_CHARS):
        self.llm = llm
        self.timeout = timeout
        self.max_chars = max_chars

    async def extract(self, body_text: str) -> StageResult[ExtractionResult]:
        if not body_text or not body_text.strip():
            return Skip("empty body")

        # Bound cost and latency of the call
        prompt = EXTRACT_PROMPT.format(body=body_text[: self.max_chars])
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return Failed(ExtractionError(f"extraction timed out after {self.timeout}s"))
        except Exception as e:
            return Failed(ExtractionError(f"extraction call failed: {e}"))

        try:
            result = parse_extraction(message_text(response))
        except ExtractionError as e:
            return Failed(e)

        if result is None:
            return Skip("no company name in extraction")
        return Ok(result)

    async def extract_or_none(self, body_text: str) -> ExtractionResult | None:
        result = await self.extract(body_text)
        if isinstance(result, Ok):
            return result.value
        if isinstance(result, Failed):
            logger.warning(f"Extraction failed: {result.reason}")
        return None
