"""In-memory canonical store, used by tests and short-lived scripts."""

from __future__ import annotations

import threading
from typing import Optional
from uuid import uuid4

from pos_analytics.resolver.models import CanonicalEntity, EntityType, NameMapping
from pos_analytics.store.base import CanonicalStore


class InMemoryStore(CanonicalStore):
    """Canonical entities and mappings held in dicts behind a single lock.

    The lock makes ``insert_canonical_if_absent`` the atomic
    insert-or-return-existing primitive the resolver relies on.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entities: dict[EntityType, dict[str, CanonicalEntity]] = {t: {} for t in EntityType}
        self._mappings: dict[EntityType, dict[str, NameMapping]] = {t: {} for t in EntityType}

    def find_mapping(self, entity_type: EntityType, normalized_raw_name: str) -> Optional[NameMapping]:
        with self._lock:
            return self._mappings[entity_type].get(normalized_raw_name)

    def list_canonical(self, entity_type: EntityType) -> list[CanonicalEntity]:
        with self._lock:
            # dicts keep insertion order
            return list(self._entities[entity_type].values())

    def insert_canonical_if_absent(
        self,
        entity_type: EntityType,
        canonical_name: str,
        normalized_name: str,
    ) -> tuple[CanonicalEntity, bool]:
        with self._lock:
            existing = self._entities[entity_type].get(normalized_name)
            if existing is not None:
                return existing, False
            entity = CanonicalEntity(
                id=str(uuid4()),
                canonical_name=canonical_name,
                normalized_name=normalized_name,
            )
            self._entities[entity_type][normalized_name] = entity
            return entity, True

    def insert_mapping(self, entity_type: EntityType, mapping: NameMapping) -> bool:
        with self._lock:
            table = self._mappings[entity_type]
            if mapping.normalized_raw_name in table:
                return False
            table[mapping.normalized_raw_name] = mapping
            return True

    def mappings(self, entity_type: EntityType) -> list[NameMapping]:
        """Return all mappings of a type, in insertion order."""
        with self._lock:
            return list(self._mappings[entity_type].values())
