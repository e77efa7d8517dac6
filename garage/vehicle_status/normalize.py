"""
Vehicle name normalization.

Transforms: "  BMW   4-Series!! " -> "bmw 4-series"

Every comparison the resolver makes (fuzzy, keyword, duplicates) runs over
normalized names. Exact and case-insensitive stages use the trimmed raw name.
"""

import re
from typing import Iterable

from .config import DEFAULT_STOP_WORDS

_PUNCTUATION = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_TOKEN_SPLIT = re.compile(r"[\s\-]+")


def normalize_name(raw) -> str:
    """
    Normalize a vehicle name for comparison.

    Lowercases, strips punctuation other than hyphens, collapses whitespace
    runs to one space and trims. Idempotent.

    Args:
        raw: Name as typed by a user; non-strings normalize to ""

    Returns:
        Normalized name
    """
    if not raw or not isinstance(raw, str):
        return ""
    s = raw.lower()
    s = _PUNCTUATION.sub("", s)
    s = _WHITESPACE.sub(" ", s)
    return s.strip()


def extract_keywords(name, stop_words: Iterable[str] = DEFAULT_STOP_WORDS) -> list[str]:
    """
    Split a name into comparison keywords.

    Tokens are split on whitespace and hyphens; single characters and stop
    words are dropped. Order is preserved, repeats removed.

    Example:
        extract_keywords("The BMW M3 Touring") -> ["bmw", "m3", "touring"]
    """
    stop = set(stop_words)
    keywords = []
    for token in _TOKEN_SPLIT.split(normalize_name(name)):
        if len(token) > 1 and token not in stop and token not in keywords:
            keywords.append(token)
    return keywords
