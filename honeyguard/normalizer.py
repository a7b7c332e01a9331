"""Text normalisation for keyword matching.

Produces two lowercase views of the input: the full text with whitespace
collapsed, and a compact view with filler determiners removed so that a
configured phrase like "share otp" still hits "Share your OTP".
"""

import re
from typing import NamedTuple

FILLER_WORDS = ("your", "my", "the", "a", "an", "me", "us", "this", "that")

_WHITESPACE = re.compile(r"\s+")
_FILLERS = re.compile(r"\b(?:%s)\b" % "|".join(FILLER_WORDS))


class NormalizedText(NamedTuple):
    full: str
    compact: str


def collapse(text: str) -> str:
    """Lowercase and collapse runs of whitespace to single spaces."""
    return _WHITESPACE.sub(" ", text.lower()).strip()


def strip_fillers(text: str) -> str:
    """Drop filler words from already-lowercased text."""
    return _WHITESPACE.sub(" ", _FILLERS.sub(" ", text)).strip()


def normalize(text: str) -> NormalizedText:
    if not text:
        return NormalizedText("", "")
    full = collapse(text)
    return NormalizedText(full, strip_fillers(full))
