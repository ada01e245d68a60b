"""Canonical entity resolution for raw item and category names."""

from pos_analytics.resolver.models import (
    CanonicalEntity,
    EntityType,
    MappingMethod,
    NameMapping,
)
from pos_analytics.resolver.resolver import CanonicalResolver, find_best_match

__all__ = [
    "CanonicalEntity",
    "CanonicalResolver",
    "EntityType",
    "MappingMethod",
    "NameMapping",
    "find_best_match",
]
