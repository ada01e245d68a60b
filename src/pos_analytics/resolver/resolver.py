"""Resolution of raw item/category names to canonical entities.

Resolution runs in up to four steps:

1. Exact lookup of the normalized raw name (process cache, then the store's
   mapping table).
2. Fuzzy scan of every canonical entity of the type, keeping the first
   candidate with the strictly highest similarity.
3. Accept the best candidate when its score reaches the threshold and record
   a ``fuzzy`` mapping.
4. Otherwise create a new canonical entity through the store's atomic
   insert-if-absent primitive and record a ``created`` mapping.

Example:
    >>> from pos_analytics.store.memory import InMemoryStore
    >>> resolver = CanonicalResolver(InMemoryStore())
    >>> taco_id = resolver.resolve("Taco 12 pcs", EntityType.ITEM).value
    >>> resolver.resolve("taco", EntityType.ITEM).value == taco_id
    True
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from pos_analytics.config import DEFAULT_CATEGORY_THRESHOLD, DEFAULT_ITEM_THRESHOLD
from pos_analytics.exceptions import ConfigError, PosAnalyticsError, ResolutionError, StoreError
from pos_analytics.normalize import category_display_name, item_display_name, normalize, similarity
from pos_analytics.resolver.models import CanonicalEntity, EntityType, MappingMethod, NameMapping
from pos_analytics.results import Outcome

if TYPE_CHECKING:
    from pos_analytics.config import AnalyticsConfig
    from pos_analytics.store.base import CanonicalStore

logger = logging.getLogger(__name__)


def find_best_match(
    normalized: str,
    candidates: list[CanonicalEntity],
) -> tuple[Optional[CanonicalEntity], float]:
    """Return the highest-scoring candidate and its score.

    Only a strictly greater score replaces the current leader, so on ties the
    candidate seen first wins. Candidates with an empty normalized name are
    skipped.
    """
    best: Optional[CanonicalEntity] = None
    best_score = 0.0
    for candidate in candidates:
        if not candidate.normalized_name:
            continue
        score = similarity(normalized, candidate.normalized_name)
        if score > best_score:
            best, best_score = candidate, score
    return best, best_score


class CanonicalResolver:
    """Turns raw provider-specific names into canonical entity ids.

    The resolver holds no locks of its own; correctness under concurrent
    resolution of the same unseen name comes from the store's
    ``insert_canonical_if_absent``. The optional exact-match cache only ever
    holds keys whose mapping is present in the store.

    Args:
        store: Canonical store collaborator.
        item_threshold: Default fuzzy threshold for items.
        category_threshold: Default fuzzy threshold for categories.
        use_cache: Keep an in-process cache of resolved normalized keys.
    """

    def __init__(
        self,
        store: CanonicalStore,
        item_threshold: float = DEFAULT_ITEM_THRESHOLD,
        category_threshold: float = DEFAULT_CATEGORY_THRESHOLD,
        use_cache: bool = True,
    ) -> None:
        self.store = store
        self.thresholds = {
            EntityType.ITEM: item_threshold,
            EntityType.CATEGORY: category_threshold,
        }
        self._cache: Optional[dict[tuple[EntityType, str], str]] = {} if use_cache else None

    @classmethod
    def from_config(cls, store: CanonicalStore, config: AnalyticsConfig) -> CanonicalResolver:
        return cls(
            store,
            item_threshold=config.item_threshold,
            category_threshold=config.category_threshold,
        )

    def resolve(
        self,
        raw_name: Any,
        entity_type: EntityType = EntityType.ITEM,
        threshold: Optional[float] = None,
    ) -> Outcome[str]:
        """Resolve a raw name, reporting failures as a typed Outcome.

        Args:
            raw_name: Raw item or category name (None/empty allowed).
            entity_type: Item or category.
            threshold: Fuzzy acceptance threshold; defaults per entity type.

        Returns:
            Outcome whose value is the canonical id, or None for an absent
            name. Failed outcomes carry ``ErrorKind.RESOLUTION`` when the
            canonical entity could not be created and ``ErrorKind.STORE``
            when the mapping lookup failed.
        """
        try:
            return Outcome.success(self.resolve_or_raise(raw_name, entity_type, threshold))
        except PosAnalyticsError as e:
            logger.error("Failed to resolve %s %r: %s", entity_type.value, raw_name, e)
            return Outcome.failure(e)

    def resolve_or_raise(
        self,
        raw_name: Any,
        entity_type: EntityType = EntityType.ITEM,
        threshold: Optional[float] = None,
    ) -> Optional[str]:
        """Resolve a raw name, raising PosAnalyticsError subclasses on failure."""
        entity_type = EntityType(entity_type)
        if threshold is None:
            threshold = self.thresholds[entity_type]
        elif not 0.0 <= threshold <= 1.0:
            raise ConfigError(f"threshold must be within [0, 1], got {threshold}")

        normalized = normalize(raw_name)
        if normalized is None:
            logger.debug("Nothing to resolve for %s %r", entity_type.value, raw_name)
            return None

        # 1. Exact match: cache, then store
        if self._cache is not None:
            cached = self._cache.get((entity_type, normalized))
            if cached is not None:
                return cached

        mapping = self.store.find_mapping(entity_type, normalized)
        if mapping is not None:
            logger.debug("Exact mapping hit for %s %r", entity_type.value, normalized)
            self._remember(entity_type, normalized, mapping.canonical_id)
            return mapping.canonical_id

        # 2-3. Fuzzy match against existing canonical entities
        best, score = find_best_match(normalized, self.store.list_canonical(entity_type))
        if best is not None and score >= threshold:
            logger.info(
                "Fuzzy matched %s %r -> %r (score %.3f)",
                entity_type.value,
                raw_name,
                best.canonical_name,
                score,
            )
            return self._record_mapping(
                entity_type, str(raw_name), normalized, best.id, MappingMethod.FUZZY, score
            )

        # 4. Create a new canonical entity
        entity, created = self._create(entity_type, str(raw_name), normalized)
        method = MappingMethod.CREATED if created else MappingMethod.EXACT
        return self._record_mapping(entity_type, str(raw_name), normalized, entity.id, method, 1.0)

    def _create(
        self,
        entity_type: EntityType,
        raw_name: str,
        normalized: str,
    ) -> tuple[CanonicalEntity, bool]:
        if entity_type is EntityType.CATEGORY:
            canonical_name = category_display_name(normalized)
        else:
            canonical_name = item_display_name(raw_name)
        canonical_normalized = normalize(canonical_name) or normalized

        try:
            entity, created = self.store.insert_canonical_if_absent(
                entity_type, canonical_name, canonical_normalized
            )
        except StoreError as e:
            raise ResolutionError(
                f"Could not create canonical {entity_type.value} {canonical_name!r}: {e}"
            ) from e

        if created:
            logger.info("Created canonical %s %r", entity_type.value, canonical_name)
        else:
            logger.info(
                "Canonical %s %r already existed as %r",
                entity_type.value,
                canonical_name,
                entity.canonical_name,
            )
        return entity, created

    def _record_mapping(
        self,
        entity_type: EntityType,
        raw_name: str,
        normalized: str,
        canonical_id: str,
        method: MappingMethod,
        confidence: float,
    ) -> str:
        """Persist the mapping; a failed write is logged and does not fail resolution."""
        mapping = NameMapping(
            raw_name=raw_name,
            normalized_raw_name=normalized,
            canonical_id=canonical_id,
            method=method,
            confidence=confidence,
        )
        try:
            written = self.store.insert_mapping(entity_type, mapping)
            if not written:
                # A concurrent resolver recorded this key first; the stored row wins.
                existing = self.store.find_mapping(entity_type, normalized)
                if existing is not None:
                    canonical_id = existing.canonical_id
        except StoreError as e:
            logger.warning(
                "Could not record %s mapping %r -> %s: %s",
                entity_type.value,
                normalized,
                canonical_id,
                e,
            )
            return canonical_id

        self._remember(entity_type, normalized, canonical_id)
        return canonical_id

    def _remember(self, entity_type: EntityType, normalized: str, canonical_id: str) -> None:
        if self._cache is not None:
            self._cache[(entity_type, normalized)] = canonical_id
