"""Binary relevance check: is this email about a job application?"""

from __future__ import annotations

import asyncio

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from loguru import logger

from inboxtrack.application.ai.llm import message_text
from inboxtrack.domain.errors import ClassificationError
from inboxtrack.domain.results import Failed, Ok, StageResult

CLASSIFY_PROMPT = """Analyze this email.
Subject: "{subject}"
Sender: "{sender}"

Is this email related to a job application, interview, rejection, or offer?
Reply ONLY with "true" or "false"."""


def parse_verdict(text: str) -> bool | None:
    """Map a model reply to True/False, or None when it is not a clean boolean."""
    token = text.strip().strip("\"'`.").strip().lower()
    if token == "true":
        return True
    if token == "false":
        return False
    return None


class RelevanceClassifier:
    """Asks the LLM for a strict true/false verdict on subject and sender.

    Any failure (timeout, provider error, ambiguous answer) is reported as
    ``Failed`` and ``is_relevant`` treats it as not relevant, so a broken
    classifier drops messages instead of inventing records.
    """

    def __init__(self, llm: BaseChatModel, timeout: float = 30.0):
        self.llm = llm
        self.timeout = timeout

    async def classify(self, subject: str, sender: str) -> StageResult[bool]:
        prompt = CLASSIFY_PROMPT.format(subject=subject, sender=sender)
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return Failed(ClassificationError(f"classification timed out after {self.timeout}s"))
        except Exception as e:
            return Failed(ClassificationError(f"classification call failed: {e}"))

        text = message_text(response)
        verdict = parse_verdict(text)
        if verdict is None:
            return Failed(ClassificationError(f"ambiguous classification reply: {text[:80]!r}"))
        return Ok(verdict)

    async def is_relevant(self, subject: str, sender: str) -> bool:
        result = await self.classify(subject, sender)
        if isinstance(result, Ok):
            return result.value
        if isinstance(result, Failed):
            logger.warning(f"Classifier failed for {subject[:50]!r}, treating as not relevant: {result.reason}")
        return False
