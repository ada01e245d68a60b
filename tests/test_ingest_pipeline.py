"""Tests for the ingestion pipeline's isolation and abort rules."""

import json
from dataclasses import replace
from decimal import Decimal
from pathlib import Path

import pytest

from pos_analytics.config import AnalyticsConfig
from pos_analytics.exceptions import ConnectivityError, ErrorKind, StoreError
from pos_analytics.ingest import (
    IngestionPipeline,
    LineItemPayload,
    OrderPayload,
    load_orders_json,
    minor_to_currency,
)
from pos_analytics.resolver import CanonicalResolver, EntityType
from pos_analytics.store import InMemoryStore, SQLiteStore


class OfflineStore(SQLiteStore):
    def ping(self) -> None:
        raise ConnectivityError("orders table unreachable")


class BrokenOptionsStore(SQLiteStore):
    def insert_option(self, option) -> None:
        raise StoreError("order_item_options is locked")


class BrokenCanonicalStore(InMemoryStore):
    def insert_canonical_if_absent(self, entity_type, canonical_name, normalized_name):
        raise StoreError("canonical_items is unavailable")


def _count(store: SQLiteStore, table: str) -> int:
    return store.connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


class TestIngestion:
    def test_writes_orders_line_items_and_options(self, seeded_store: SQLiteStore) -> None:
        assert _count(seeded_store, "orders") == 3
        assert _count(seeded_store, "order_items") == 4
        assert _count(seeded_store, "order_item_options") == 1

    def test_line_items_link_to_shared_canonical_entities(self, seeded_store: SQLiteStore) -> None:
        items = {e.canonical_name for e in seeded_store.list_canonical(EntityType.ITEM)}
        categories = {e.canonical_name for e in seeded_store.list_canonical(EntityType.CATEGORY)}
        assert items == {"Latte", "Taco"}
        assert categories == {"Hot Drinks", "Food"}

        rows = seeded_store.connection.execute(
            "SELECT name, canonical_items.canonical_name FROM order_items "
            "JOIN canonical_items ON canonical_items.id = order_items.canonical_item_id "
            "ORDER BY name"
        ).fetchall()
        assert rows == [
            ("Latte", "Latte"),
            ("Lattes", "Latte"),
            ("Taco", "Taco"),
            ("Taco 12 pcs", "Taco"),
        ]

    def test_report_counts(self, sqlite_store: SQLiteStore, orders: list[OrderPayload]) -> None:
        report = IngestionPipeline(sqlite_store, CanonicalResolver(sqlite_store)).run(orders)
        assert (report.orders, report.line_items, report.options) == (3, 4, 1)
        assert report.ok

    def test_line_item_without_category(self, sqlite_store: SQLiteStore) -> None:
        order = OrderPayload(
            order_id="o-9",
            store_id="mall",
            fulfillment_method="pickup",
            created_at="2024-03-12T12:00:00Z",
            line_items=[LineItemPayload("x", "Bagel", 1, Decimal("2.00"), category=None)],
        )
        report = IngestionPipeline(sqlite_store, CanonicalResolver(sqlite_store)).run([order])
        assert report.line_items == 1
        row = sqlite_store.connection.execute(
            "SELECT canonical_item_id, canonical_category_id FROM order_items"
        ).fetchone()
        assert row[0] is not None
        assert row[1] is None

    def test_concurrent_orders_share_one_canonical_entity(self, sqlite_store: SQLiteStore) -> None:
        orders = [
            OrderPayload(
                order_id=f"o-{i}",
                store_id="mall",
                fulfillment_method="pickup",
                created_at="2024-03-12T12:00:00Z",
                line_items=[LineItemPayload(f"i-{i}", "Mocha", 1, Decimal("5.00"), category="Coffee")],
            )
            for i in range(24)
        ]
        pipeline = IngestionPipeline(sqlite_store, CanonicalResolver(sqlite_store), workers=6)
        report = pipeline.run(orders)

        assert report.orders == 24
        assert report.ok
        assert len(sqlite_store.list_canonical(EntityType.ITEM)) == 1
        assert len(sqlite_store.list_canonical(EntityType.CATEGORY)) == 1

    def test_from_config_uses_workers(self, sqlite_store: SQLiteStore) -> None:
        config = AnalyticsConfig(ingest_workers=3)
        pipeline = IngestionPipeline.from_config(sqlite_store, CanonicalResolver(sqlite_store), config)
        assert pipeline.workers == 3


class TestIsolatedFailures:
    def test_duplicate_orders_are_skipped(self, seeded_store: SQLiteStore, orders: list[OrderPayload]) -> None:
        extra = replace(orders[0], order_id="o-4")
        report = IngestionPipeline(seeded_store, CanonicalResolver(seeded_store)).run(orders + [extra])

        assert report.orders == 1, "Only the new order should be written"
        assert [f.key for f in report.failures] == ["o-1", "o-2", "o-3"]
        assert {f.kind for f in report.failures} == {ErrorKind.DUPLICATE}
        assert {f.stage for f in report.failures} == {"order"}

    def test_resolution_failure_skips_line_item_only(self, sqlite_store: SQLiteStore, orders: list[OrderPayload]) -> None:
        pipeline = IngestionPipeline(sqlite_store, CanonicalResolver(BrokenCanonicalStore()))
        report = pipeline.run(orders)

        assert report.orders == 3
        assert report.line_items == 0
        assert len(report.failures) == 4
        assert {f.kind for f in report.failures} == {ErrorKind.RESOLUTION}
        assert {f.stage for f in report.failures} == {"line_item"}

    def test_option_failure_keeps_line_item(self, orders: list[OrderPayload]) -> None:
        store = BrokenOptionsStore(":memory:")
        report = IngestionPipeline(store, CanonicalResolver(store)).run(orders)

        assert (report.orders, report.line_items, report.options) == (3, 4, 0)
        [failure] = report.failures
        assert failure.stage == "option"
        assert failure.kind is ErrorKind.STORE
        assert failure.key == "o-1/sq-oat"
        store.close()

    def test_unparseable_timestamp_skips_order_only(self, sqlite_store: SQLiteStore) -> None:
        bad = OrderPayload("bad", "downtown", "pickup", "not-a-date", total=Decimal("3.00"))
        good = OrderPayload("good", "downtown", "pickup", "2024-03-10T10:00:00Z", total=Decimal("5.00"))
        report = IngestionPipeline(sqlite_store, CanonicalResolver(sqlite_store)).run([bad, good])

        assert report.orders == 1
        [failure] = report.failures
        assert (failure.stage, failure.key, failure.kind) == ("order", "bad", ErrorKind.STORE)
        assert _count(sqlite_store, "orders") == 1


class TestAbort:
    def test_connectivity_failure_aborts_before_writing(self, orders: list[OrderPayload]) -> None:
        store = OfflineStore(":memory:")
        with pytest.raises(ConnectivityError):
            IngestionPipeline(store, CanonicalResolver(store)).run(orders)
        assert _count(store, "orders") == 0
        store.close()


class TestPayloads:
    @pytest.mark.parametrize(
        ("minor", "expected"),
        [(1250, "12.50"), (5, "0.05"), (0, "0.00"), (None, "0.00"), ("999", "9.99")],
    )
    def test_minor_to_currency(self, minor: object, expected: str) -> None:
        assert minor_to_currency(minor) == Decimal(expected)

    def test_load_orders_json(self, tmp_path: Path) -> None:
        path = tmp_path / "orders.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "order_id": "o-1",
                        "store_id": "downtown",
                        "fulfillment_method": "pickup",
                        "created_at": "2024-03-10T09:15:00Z",
                        "total": 12.3,
                        "provider": "Square",
                        "line_items": [
                            {
                                "item_id": "a",
                                "name": "Latte",
                                "quantity": 2,
                                "unit_price": "4.5",
                                "category": "Hot Drinks",
                                "options": [{"item_id": "b", "name": "Oat Milk", "price": 0.75}],
                            }
                        ],
                    }
                ]
            )
        )
        [order] = load_orders_json(path)
        assert order.total == Decimal("12.30")
        assert order.tip == Decimal("0.00")
        [item] = order.line_items
        assert item.unit_price == Decimal("4.50")
        assert item.options[0].price == Decimal("0.75")

    def test_load_orders_json_rejects_non_list(self, tmp_path: Path) -> None:
        path = tmp_path / "orders.json"
        path.write_text('{"order_id": "o-1"}')
        with pytest.raises(ValueError):
            load_orders_json(path)

    def test_load_orders_json_rejects_missing_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "orders.json"
        path.write_text('[{"store_id": "downtown"}]')
        with pytest.raises(ValueError):
            load_orders_json(path)

    def test_load_orders_json_rejects_non_numeric_amount(self, tmp_path: Path) -> None:
        path = tmp_path / "orders.json"
        path.write_text('[{"order_id": "o-1", "store_id": "downtown", "total": "abc"}]')
        with pytest.raises(ValueError, match="Malformed order"):
            load_orders_json(path)
