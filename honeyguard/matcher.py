"""
Keyword pattern matcher.

Scans normalised text against category-tagged phrase tables and records
every phrase found, grouped by category. Matching is plain substring
containment (no word splitting) so multi-word and Devanagari phrases work
the same way as single Latin words.
"""

import logging
from typing import Iterable, List, Tuple

from honeyguard.config import KeywordCategory
from honeyguard.normalizer import NormalizedText, collapse, normalize, strip_fillers
from honeyguard.results import CategoryMatchSet

logger = logging.getLogger(__name__)


def phrase_in(phrase: str, text: NormalizedText) -> bool:
    """True if the phrase occurs in either the full or the filler-free view."""
    needle = collapse(phrase)
    if needle in text.full:
        return True
    compact_needle = strip_fillers(needle)
    return bool(compact_needle) and compact_needle in text.compact


def match(text: str, categories: Iterable[KeywordCategory]) -> CategoryMatchSet:
    """Return the phrases of each category found in text.

    Every phrase is tested (no early exit); categories with no hits are
    kept with an empty tuple so downstream counts are always defined.
    """
    normalized = normalize(text or "")
    grouped: List[Tuple[str, Tuple[str, ...]]] = []

    for category in categories:
        if not normalized.full:
            grouped.append((category.name, ()))
            continue
        found = tuple(
            phrase for phrase in category.phrases
            if phrase_in(phrase, normalized)
        )
        grouped.append((category.name, found))

    result = CategoryMatchSet(tuple(grouped))
    logger.debug(f"Matched {result.total} phrases across {len(grouped)} categories")
    return result
