"""Fuzzy keyword suggestions.

Used to turn an unknown variable or unit name into a helpful
"did you mean ...?" hint on configuration errors.
"""

from __future__ import annotations
from typing import Iterable, Optional

try:
    from rapidfuzz import process, fuzz
except ImportError as e:
    raise ImportError("rapidfuzz not installed. pip install rapidfuzz") from e

from metalfoams.utils.normalize import normalize_label


def topk_matches(
    query: str,
    choices: Iterable[str],
    *,
    k: int = 3,
) -> list[tuple[str, float]]:
    """Return top-K choices with scores, best first.

    Matching is case-insensitive (both sides pass through normalize_label)
    and scored with RapidFuzz WRatio.

    Args:
        query: Text to match
        choices: Candidate strings
        k: Number of candidates to return (default: 3)

    Returns:
        List of (choice, score) tuples, ordered by descending score

    Examples:
        >>> topk_matches("youngs modulus", ["Young modulus", "yield stress"], k=1)
        [('Young modulus', 92.3)]
    """
    choices = list(choices)
    if not choices or not query:
        return []

    normalized = [normalize_label(c) for c in choices]
    matches = process.extract(
        normalize_label(query),
        normalized,
        scorer=fuzz.WRatio,
        limit=k,
    )
    return [(choices[idx], score) for _, score, idx in matches]


def suggest_match(
    query: str,
    choices: Iterable[str],
    *,
    threshold: int = 70,
) -> Optional[str]:
    """Return the closest choice if it scores at least ``threshold``.

    Examples:
        >>> suggest_match("Youngs modulus", ["Young modulus", "porosity"])
        'Young modulus'

        >>> suggest_match("xyz", ["Young modulus", "porosity"]) is None
        True
    """
    best = topk_matches(query, choices, k=1)
    if not best:
        return None

    choice, score = best[0]
    if score < threshold:
        return None
    return choice


__all__ = [
    "topk_matches",
    "suggest_match",
]
