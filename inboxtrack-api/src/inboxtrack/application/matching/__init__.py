"""Company-name matching."""

from inboxtrack.application.matching.company_match import (
    company_distance,
    company_similarity,
    find_best_match,
)

__all__ = [
    "company_distance",
    "company_similarity",
    "find_best_match",
]
