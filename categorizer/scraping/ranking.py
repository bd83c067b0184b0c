"""
Keyword tokenization and frequency ranking.
"""

from __future__ import annotations

from collections.abc import Iterable


def tokenize(text: str, *, min_length: int = 4) -> list[str]:
    """
    Split on whitespace, drop short tokens, lowercase the rest.
    """

    return [token.lower() for token in text.split() if len(token) >= min_length]


def rank_keywords(tokens: Iterable[str], *, limit: int = 100) -> list[str]:
    """
    Deduplicate tokens and order them by descending frequency.

    Ties keep first-seen order: counts live in an insertion-ordered dict
    and `sorted` is stable.
    """

    counts: dict[str, int] = {}
    for token in tokens:
        counts[token] = counts.get(token, 0) + 1
    ranked = sorted(counts, key=lambda token: -counts[token])
    return ranked[: max(0, limit)]
