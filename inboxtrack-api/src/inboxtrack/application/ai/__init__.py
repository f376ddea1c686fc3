"""LLM-backed classification and extraction stages."""

from inboxtrack.application.ai.classifier import RelevanceClassifier
from inboxtrack.application.ai.extractor import DataExtractor
from inboxtrack.application.ai.llm import create_llm

__all__ = [
    "DataExtractor",
    "RelevanceClassifier",
    "create_llm",
]
