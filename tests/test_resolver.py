"""Tests for CanonicalResolver.

Covers the exact/fuzzy/create steps, the fuzzy threshold boundary, failure
kinds and concurrent resolution of the same unseen name.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from pos_analytics.config import AnalyticsConfig
from pos_analytics.exceptions import ConfigError, ErrorKind, ResolutionError, StoreError
from pos_analytics.normalize import similarity
from pos_analytics.resolver import (
    CanonicalEntity,
    CanonicalResolver,
    EntityType,
    MappingMethod,
    find_best_match,
)
from pos_analytics.store import InMemoryStore, SQLiteStore


class CountingStore(InMemoryStore):
    """InMemoryStore that counts store calls."""

    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def find_mapping(self, entity_type, normalized_raw_name):
        self.calls += 1
        return super().find_mapping(entity_type, normalized_raw_name)

    def list_canonical(self, entity_type):
        self.calls += 1
        return super().list_canonical(entity_type)


class FailingMappingStore(InMemoryStore):
    """Canonical creation works, mapping writes fail."""

    def insert_mapping(self, entity_type, mapping):
        raise StoreError("item_mappings is read-only")


class FailingCreateStore(InMemoryStore):
    """Canonical creation fails."""

    def insert_canonical_if_absent(self, entity_type, canonical_name, normalized_name):
        raise StoreError("canonical_items is unavailable")


class FailingLookupStore(InMemoryStore):
    def find_mapping(self, entity_type, normalized_raw_name):
        raise StoreError("connection reset")


class TestResolveSteps:
    """Tests for exact, fuzzy and create resolution."""

    @pytest.mark.parametrize("raw", [None, "", "   ", "12", "🌮"])
    def test_absent_name_resolves_to_none_without_store_access(self, raw: object) -> None:
        store = CountingStore()
        outcome = CanonicalResolver(store).resolve(raw, EntityType.ITEM)
        assert outcome.ok
        assert outcome.value is None
        assert store.calls == 0, "An absent name must not touch the store"

    def test_repeated_resolution_is_idempotent(self, resolver: CanonicalResolver, memory_store: InMemoryStore) -> None:
        first = resolver.resolve("Chicken Wings", EntityType.ITEM).unwrap()
        second = resolver.resolve("Chicken Wings", EntityType.ITEM).unwrap()
        assert first == second
        assert len(memory_store.list_canonical(EntityType.ITEM)) == 1

    def test_repeated_resolution_without_cache_uses_mapping(self, memory_store: InMemoryStore) -> None:
        resolver = CanonicalResolver(memory_store, use_cache=False)
        first = resolver.resolve_or_raise("Chicken Wings")
        second = resolver.resolve_or_raise("chicken wings!")
        assert first == second
        assert len(memory_store.list_canonical(EntityType.ITEM)) == 1
        assert len(memory_store.mappings(EntityType.ITEM)) == 1

    def test_new_category_gets_title_cased_name(self, resolver: CanonicalResolver, memory_store: InMemoryStore) -> None:
        canonical_id = resolver.resolve("hot drinks", EntityType.CATEGORY).unwrap()
        [entity] = memory_store.list_canonical(EntityType.CATEGORY)
        assert entity.id == canonical_id
        assert entity.canonical_name == "Hot Drinks"
        assert entity.normalized_name == "hot drinks"

    def test_new_item_strips_quantity_from_raw_name(self, resolver: CanonicalResolver, memory_store: InMemoryStore) -> None:
        resolver.resolve("Taco 12 pcs", EntityType.ITEM).unwrap()
        [entity] = memory_store.list_canonical(EntityType.ITEM)
        assert entity.canonical_name == "Taco"
        assert entity.normalized_name == "taco"

        [mapping] = memory_store.mappings(EntityType.ITEM)
        assert mapping.raw_name == "Taco 12 pcs"
        assert mapping.method is MappingMethod.CREATED
        assert mapping.confidence == 1.0

    def test_item_and_category_namespaces_are_separate(self, resolver: CanonicalResolver, memory_store: InMemoryStore) -> None:
        item_id = resolver.resolve("Coffee", EntityType.ITEM).unwrap()
        category_id = resolver.resolve("Coffee", EntityType.CATEGORY).unwrap()
        assert item_id != category_id
        assert len(memory_store.list_canonical(EntityType.ITEM)) == 1
        assert len(memory_store.list_canonical(EntityType.CATEGORY)) == 1


class TestFuzzyMatching:
    def test_fuzzy_match_records_score(self, resolver: CanonicalResolver, memory_store: InMemoryStore) -> None:
        latte_id = resolver.resolve("Latte", EntityType.ITEM).unwrap()
        assert resolver.resolve("Lattes", EntityType.ITEM).unwrap() == latte_id

        mapping = memory_store.find_mapping(EntityType.ITEM, "lattes")
        assert mapping is not None
        assert mapping.method is MappingMethod.FUZZY
        assert mapping.confidence == pytest.approx(1 - 1 / 6)
        assert len(memory_store.list_canonical(EntityType.ITEM)) == 1

    def test_score_equal_to_threshold_is_accepted(self, resolver: CanonicalResolver, memory_store: InMemoryStore) -> None:
        latte_id = resolver.resolve("Latte", EntityType.ITEM).unwrap()
        threshold = similarity("lattes", "latte")

        assert resolver.resolve("Lattes", EntityType.ITEM, threshold=threshold).unwrap() == latte_id
        mapping = memory_store.find_mapping(EntityType.ITEM, "lattes")
        assert mapping.confidence == threshold

    def test_score_below_threshold_creates_entity(self, resolver: CanonicalResolver, memory_store: InMemoryStore) -> None:
        latte_id = resolver.resolve("Latte", EntityType.ITEM).unwrap()
        threshold = similarity("lattes", "latte") + 1e-9

        lattes_id = resolver.resolve("Lattes", EntityType.ITEM, threshold=threshold).unwrap()
        assert lattes_id != latte_id
        assert len(memory_store.list_canonical(EntityType.ITEM)) == 2

    def test_category_default_threshold_is_lower(self, resolver: CanonicalResolver) -> None:
        # "tea" vs "teas" scores exactly 0.75
        tea_category = resolver.resolve("Tea", EntityType.CATEGORY).unwrap()
        assert resolver.resolve("Teas", EntityType.CATEGORY).unwrap() == tea_category

        tea_item = resolver.resolve("Tea", EntityType.ITEM).unwrap()
        assert resolver.resolve("Teas", EntityType.ITEM).unwrap() != tea_item

    def test_from_config_thresholds(self, memory_store: InMemoryStore) -> None:
        config = AnalyticsConfig(item_threshold=0.9, category_threshold=0.6)
        resolver = CanonicalResolver.from_config(memory_store, config)
        assert resolver.thresholds == {EntityType.ITEM: 0.9, EntityType.CATEGORY: 0.6}

    def test_tie_keeps_first_candidate(self) -> None:
        bat = CanonicalEntity("1", "Bat", "bat")
        cat = CanonicalEntity("2", "Cat", "cat")
        assert find_best_match("hat", [bat, cat]) == (bat, pytest.approx(2 / 3))
        assert find_best_match("hat", [cat, bat])[0] == cat

    def test_tie_follows_creation_order_in_store(self, resolver: CanonicalResolver) -> None:
        bat_id = resolver.resolve("Bat", EntityType.ITEM).unwrap()
        resolver.resolve("Cat", EntityType.ITEM).unwrap()
        assert resolver.resolve("Hat", EntityType.ITEM, threshold=0.6).unwrap() == bat_id

    def test_best_match_skips_empty_candidates(self) -> None:
        empty = CanonicalEntity("0", "", "")
        latte = CanonicalEntity("1", "Latte", "latte")
        assert find_best_match("latte", [empty, latte])[0] == latte
        assert find_best_match("latte", []) == (None, 0.0)


class TestFailures:
    def test_invalid_threshold_is_config_error(self, resolver: CanonicalResolver) -> None:
        outcome = resolver.resolve("Latte", EntityType.ITEM, threshold=1.5)
        assert not outcome.ok
        assert outcome.kind is ErrorKind.CONFIG
        with pytest.raises(ConfigError):
            resolver.resolve_or_raise("Latte", EntityType.ITEM, threshold=-0.1)

    def test_creation_failure_is_fatal(self) -> None:
        resolver = CanonicalResolver(FailingCreateStore())
        outcome = resolver.resolve("Latte", EntityType.ITEM)
        assert not outcome.ok
        assert outcome.kind is ErrorKind.RESOLUTION
        with pytest.raises(ResolutionError):
            resolver.resolve_or_raise("Latte", EntityType.ITEM)

    def test_mapping_write_failure_keeps_resolved_id(self) -> None:
        store = FailingMappingStore()
        resolver = CanonicalResolver(store)

        outcome = resolver.resolve("Latte", EntityType.ITEM)
        assert outcome.ok, f"Mapping-write failure must not fail resolution: {outcome.error}"
        [entity] = store.list_canonical(EntityType.ITEM)
        assert outcome.value == entity.id
        assert store.mappings(EntityType.ITEM) == []

        # Not cached, so the next call finds the entity again by fuzzy scan
        assert resolver.resolve("Latte", EntityType.ITEM).value == entity.id
        assert len(store.list_canonical(EntityType.ITEM)) == 1

    def test_lookup_failure_is_store_kind(self) -> None:
        outcome = CanonicalResolver(FailingLookupStore()).resolve("Latte", EntityType.ITEM)
        assert outcome.kind is ErrorKind.STORE


class TestConcurrentResolution:
    """The store's insert-if-absent keeps one entity per normalized name."""

    @pytest.mark.parametrize("store_factory", [InMemoryStore, lambda: SQLiteStore(":memory:")])
    def test_same_unseen_name_creates_one_entity(self, store_factory) -> None:
        store = store_factory()
        names = ["Cold Brew", "cold brew", "COLD BREW", "Cold Brew 1 pc"] * 8

        def resolve(name: str) -> str:
            # Separate resolvers: no shared cache between workers
            return CanonicalResolver(store).resolve_or_raise(name, EntityType.ITEM)

        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(resolve, names))

        assert len(set(ids)) == 1, f"Expected one canonical id, got {set(ids)}"
        assert len(store.list_canonical(EntityType.ITEM)) == 1
        assert len(store.mappings(EntityType.ITEM)) == 1

    def test_lost_creation_race_maps_to_existing_entity(self, memory_store: InMemoryStore) -> None:
        existing, _ = memory_store.insert_canonical_if_absent(EntityType.ITEM, "Mocha", "mocha")
        # Simulate a resolver that scanned before the entity existed
        resolver = CanonicalResolver(memory_store)
        entity, created = resolver._create(EntityType.ITEM, "Mocha", "mocha")
        assert not created
        assert entity == existing
