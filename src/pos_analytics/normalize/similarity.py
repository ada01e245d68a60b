"""Edit-distance similarity between normalized keys."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def similarity(a: str, b: str) -> float:
    """Return ``1 - levenshtein(a, b) / max(len(a), len(b))``.

    Args:
        a: Normalized key.
        b: Normalized key.

    Returns:
        Score in [0, 1]; 1.0 for identical non-empty keys.

    Raises:
        ValueError: If both keys are empty (the score is undefined).

    Examples:
        >>> similarity("latte", "latte")
        1.0
        >>> similarity("latte", "lattes")
        0.8333333333333334
    """
    longest = max(len(a), len(b))
    if longest == 0:
        raise ValueError("similarity is undefined for two empty keys")
    return 1.0 - Levenshtein.distance(a, b) / longest
