"""Text normalization for item and category names.

Provider exports spell the same menu entry in many ways ("12 Tacos",
"Tacos  12", "TACOS 🌮"). This module maps a raw name to the comparison
key used both for exact mapping lookups and as input to the similarity
scorer, and builds the display names of new canonical entities.

Examples:
    >>> normalize("Café Latte 🌮")
    'cafe latte'
    >>> normalize("Taco 12 pcs")
    'taco'
    >>> category_display_name("hot drinks")
    'Hot Drinks'
    >>> item_display_name("Taco 12 pcs")
    'Taco'
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Optional

# Emoji and pictograph blocks, plus variation selector 16 and ZWJ
_EMOJI_RE = re.compile("[\U0001f000-\U0001faff\u2600-\u27bf\u2b00-\u2bff\ufe0f\u200d]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
# "pc"/"pcs" as a whole token, optionally glued to a leading quantity ("12pcs")
_UNIT_RE = re.compile(r"\s*\b(?:\d+\s*)?pcs?\b")
_NUMBER_RE = re.compile(r"\b\d+\b")
_SPACES_RE = re.compile(r"\s+")

# Trailing-quantity pattern stripped from raw item names ("Taco 12 pcs", "Wings 6pc")
_RAW_QUANTITY_RE = re.compile(r"\b\d+\s*pcs?\b", re.IGNORECASE)


def normalize(raw: Any) -> Optional[str]:
    """Map a raw name to its canonical comparison key.

    Process:
    1. Lowercase and apply NFKD decomposition
    2. Strip emoji/pictograph code points
    3. Strip every character outside [a-z0-9] and whitespace
    4. Remove "pc"/"pcs" unit tokens and standalone numbers
    5. Collapse whitespace and trim

    Args:
        raw: Raw name (string, None or NaN).

    Returns:
        Normalized key, or None when the input is absent or nothing
        comparable is left (e.g. "12", "🌮"). The function is idempotent.

    Examples:
        >>> normalize("Tacos  12")
        'tacos'
        >>> normalize("12 Tacos")
        'tacos'
        >>> normalize(None) is None
        True
    """
    if raw is None or (isinstance(raw, float) and raw != raw):
        return None
    s = str(raw)
    if not s.strip():
        return None
    s = unicodedata.normalize("NFKD", s.lower())
    s = _EMOJI_RE.sub("", s)
    s = _NON_ALNUM_RE.sub("", s)
    s = _UNIT_RE.sub("", s)
    s = _NUMBER_RE.sub("", s)
    s = _SPACES_RE.sub(" ", s).strip()
    return s or None


def category_display_name(normalized: str) -> str:
    """Title-case each token of a normalized category key.

    Only the first character of each token is upper-cased, so "3d prints"
    becomes "3d Prints" rather than "3D Prints".
    """
    return " ".join(token[:1].upper() + token[1:] for token in normalized.split(" "))


def item_display_name(raw: str) -> str:
    """Strip a quantity/unit suffix ("12 pcs", "6pc") from a raw item name.

    The raw spelling is otherwise preserved. Falls back to the trimmed raw
    name when nothing would be left.
    """
    cleaned = _SPACES_RE.sub(" ", _RAW_QUANTITY_RE.sub("", raw, count=1)).strip()
    return cleaned or raw.strip()
