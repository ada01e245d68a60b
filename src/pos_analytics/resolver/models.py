"""Canonical entity and name mapping records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EntityType(str, Enum):
    """Variant of canonical entity being resolved."""

    ITEM = "item"
    CATEGORY = "category"


class MappingMethod(str, Enum):
    """How a raw name was linked to its canonical entity.

    ``exact`` is recorded when creation lost a race to a concurrent
    resolver and the already-stored entity with the same normalized name
    was returned instead.
    """

    EXACT = "exact"
    FUZZY = "fuzzy"
    CREATED = "created"


@dataclass(frozen=True)
class CanonicalEntity:
    """Deduplicated representation of an item or category.

    Attributes:
        id: Store-assigned identifier.
        canonical_name: Display name used for grouping and filtering.
        normalized_name: Comparison key; unique per entity type.
    """

    id: str
    canonical_name: str
    normalized_name: str


@dataclass(frozen=True)
class NameMapping:
    """Audit/cache row linking a raw name's normalized key to an entity.

    Attributes:
        raw_name: First raw spelling seen for this key.
        normalized_raw_name: Normalized key; unique per entity type.
        canonical_id: Id of the CanonicalEntity it resolves to.
        method: Resolution method.
        confidence: Similarity score for fuzzy matches, 1.0 otherwise.
    """

    raw_name: str
    normalized_raw_name: str
    canonical_id: str
    method: MappingMethod
    confidence: float
