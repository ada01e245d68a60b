"""Shared fixtures: stores, a resolver and a small multi-provider order set."""

from collections.abc import Generator
from decimal import Decimal

import pytest

from pos_analytics.ingest import IngestionPipeline, LineItemPayload, OptionPayload, OrderPayload
from pos_analytics.resolver import CanonicalResolver
from pos_analytics.store import InMemoryStore, SQLiteStore


def build_orders() -> list[OrderPayload]:
    """Three orders from three providers spanning the March 10/11 UTC boundary.

    - o-1: downtown, Square, 2024-03-10 09:15 UTC, total 20.00
    - o-2: downtown, Toast, last microsecond of 2024-03-10 UTC, total 8.00
    - o-3: airport, DoorDash, 2024-03-11 00:00 UTC, total 15.00
    """
    return [
        OrderPayload(
            order_id="o-1",
            store_id="downtown",
            fulfillment_method="dine_in",
            created_at="2024-03-10T09:15:00Z",
            tip=Decimal("2.00"),
            tax=Decimal("1.50"),
            total=Decimal("20.00"),
            provider="Square",
            line_items=[
                LineItemPayload(
                    item_id="sq-latte",
                    name="Latte",
                    quantity=2,
                    unit_price=Decimal("4.50"),
                    category="Hot Drinks",
                    options=[OptionPayload(item_id="sq-oat", name="Oat Milk", price=Decimal("0.75"))],
                ),
                LineItemPayload(
                    item_id="sq-taco",
                    name="Taco 12 pcs",
                    quantity=1,
                    unit_price=Decimal("11.00"),
                    category="Food",
                ),
            ],
        ),
        OrderPayload(
            order_id="o-2",
            store_id="downtown",
            fulfillment_method="pickup",
            created_at="2024-03-10T23:59:59.999999Z",
            total=Decimal("8.00"),
            provider="Toast",
            line_items=[
                LineItemPayload(
                    item_id="tt-latte",
                    name="Lattes",
                    quantity=1,
                    unit_price=Decimal("4.50"),
                    category="HOT DRINKS",
                ),
            ],
        ),
        OrderPayload(
            order_id="o-3",
            store_id="airport",
            fulfillment_method="delivery",
            created_at="2024-03-11T00:00:00Z",
            total=Decimal("15.00"),
            provider="DoorDash",
            line_items=[
                LineItemPayload(
                    item_id="dd-taco",
                    name="Taco",
                    quantity=3,
                    unit_price=Decimal("5.00"),
                    category="food",
                ),
            ],
        ),
    ]


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sqlite_store() -> Generator[SQLiteStore, None, None]:
    """Fresh in-memory SQLite store with the schema created."""
    store = SQLiteStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def resolver(memory_store: InMemoryStore) -> CanonicalResolver:
    return CanonicalResolver(memory_store)


@pytest.fixture
def orders() -> list[OrderPayload]:
    return build_orders()


@pytest.fixture
def seeded_store(sqlite_store: SQLiteStore, orders: list[OrderPayload]) -> SQLiteStore:
    """SQLite store with the sample orders ingested."""
    pipeline = IngestionPipeline(sqlite_store, CanonicalResolver(sqlite_store))
    report = pipeline.run(orders)
    assert report.ok, f"Seeding should not skip anything: {report.failures}"
    return sqlite_store
