"""Approximate company-name matching for reconciliation.

Company names arrive as free text ("Google", "Google Inc.", "GOOGLE LLC")
and have to land on one canonical application record per user. Similarity
is the better of two ``SequenceMatcher`` ratios: one over the full
lowercased names and one over their core tokens with punctuation and legal
suffixes removed. Distance is ``1 - similarity``; 0.0 is exact, 1.0 is
unrelated.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Optional, Sequence

from inboxtrack.domain.models import ApplicationRecord

DEFAULT_THRESHOLD = 0.4

CORPORATE_SUFFIXES = frozenset(
    {
        "inc", "incorporated", "corp", "corporation", "co", "company", "llc",
        "llp", "ltd", "limited", "plc", "gmbh", "ag", "sa", "bv", "pty",
        "group", "holdings", "the",
    }
)

_TOKEN_RE = re.compile(r"[a-z0-9&]+")


def core_name(name: str) -> str:
    tokens = _TOKEN_RE.findall(name.lower())
    core = [t for t in tokens if t not in CORPORATE_SUFFIXES]
    return " ".join(core or tokens)


def company_similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    full = SequenceMatcher(None, a.strip().lower(), b.strip().lower()).ratio()
    core_a, core_b = core_name(a), core_name(b)
    if not core_a or not core_b:
        return full
    return max(full, SequenceMatcher(None, core_a, core_b).ratio())


def company_distance(a: str, b: str) -> float:
    return 1.0 - company_similarity(a, b)


def find_best_match(
    company_name: str,
    records: Sequence[ApplicationRecord],
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[ApplicationRecord]:
    """Closest record within ``threshold``; ties go to the most recently updated."""
    best: Optional[ApplicationRecord] = None
    best_distance = 0.0

    for record in records:
        distance = company_distance(company_name, record.company_name)
        if distance > threshold:
            continue
        if (
            best is None
            or distance < best_distance
            or (distance == best_distance and record.last_updated > best.last_updated)
        ):
            best = record
            best_distance = distance

    return best
