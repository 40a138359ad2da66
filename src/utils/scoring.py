"""Scoring helpers shared by the chunker, scorers, ranker and assembly engine.

Every heuristic in the system produces numbers in [0.0, 1.0] built from
keyword and phrase matches.  This module keeps the small pieces of math
those heuristics share:

1. **clamp** -- bound a score to [0.0, 1.0] (or any other range).
2. **count_phrases / matched_phrases** -- case-insensitive substring
   matching against a phrase vocabulary.
3. **count_word_matches** -- word-boundary regex matching, counting every
   occurrence (used by the framework detector).
4. **weighted_score** -- weighted sum over named sub-scores.
5. **mean** -- arithmetic mean that returns 0.0 for an empty sequence.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from functools import lru_cache


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Bound *value* to ``[low, high]``.

    Args:
        value: Raw score.
        low: Lower bound. Defaults to 0.0.
        high: Upper bound. Defaults to 1.0.

    Returns:
        The clamped score.
    """
    return max(low, min(high, value))


def matched_phrases(text: str, phrases: Iterable[str]) -> list[str]:
    """Return every phrase in *phrases* that appears in *text* (case-insensitive).

    Order follows *phrases*; duplicates in the vocabulary are reported once.
    """
    lowered = text.lower()
    seen: list[str] = []
    for phrase in phrases:
        if phrase and phrase.lower() in lowered and phrase not in seen:
            seen.append(phrase)
    return seen


def count_phrases(text: str, phrases: Iterable[str]) -> int:
    """Count how many distinct phrases of the vocabulary occur in *text*."""
    return len(matched_phrases(text, phrases))


@lru_cache(maxsize=1024)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)


def count_word_matches(text: str, word: str) -> int:
    """Count every word-boundary occurrence of *word* in *text*."""
    return len(_word_pattern(word).findall(text))


def weighted_score(scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """Combine named sub-scores with a weight vector.

    Args:
        scores: Sub-score name to value, each in [0.0, 1.0].
        weights: Sub-score name to weight.  Names missing from *scores*
            contribute 0.

    Returns:
        ``sum(scores[k] * weights[k])``.
    """
    return sum(scores.get(name, 0.0) * weight for name, weight in weights.items())


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)
