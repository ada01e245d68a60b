"""Simple example: resolving provider names and querying chart data.

This demonstrates the key usage patterns: canonical resolution of raw
item/category names, ingestion of normalized orders, and chart queries
over the canonical names.
"""

from decimal import Decimal

from pos_analytics import AnalyticsConfig, CanonicalResolver, EntityType, SQLiteStore
from pos_analytics.ingest import IngestionPipeline, LineItemPayload, OrderPayload
from pos_analytics.query import execute_intent, run_chart_request

# Setup
config = AnalyticsConfig(database_path=":memory:")
store = SQLiteStore.from_config(config)
resolver = CanonicalResolver.from_config(store, config)

# Example 1: Resolve raw names from different providers
print("Example 1: Canonical resolution")
print("-" * 60)
for raw in ["Taco 12 pcs", "taco", "Tacos", "Latte 🌮"]:
    outcome = resolver.resolve(raw, EntityType.ITEM)
    print(f"{raw!r:16} -> {outcome.value}")
print(f"Canonical items: {[e.canonical_name for e in store.list_canonical(EntityType.ITEM)]}\n")

# Example 2: Ingest normalized orders
print("Example 2: Ingestion")
print("-" * 60)
orders = [
    OrderPayload(
        order_id="sq-1001",
        store_id="downtown",
        fulfillment_method="dine_in",
        created_at="2024-03-10T09:15:00Z",
        total=Decimal("20.00"),
        provider="Square",
        line_items=[LineItemPayload("li-1", "Latte", 2, Decimal("4.50"), category="Hot Drinks")],
    ),
    OrderPayload(
        order_id="tt-2001",
        store_id="airport",
        fulfillment_method="pickup",
        created_at="2024-03-10T12:40:00Z",
        total=Decimal("11.00"),
        provider="Toast",
        line_items=[LineItemPayload("li-2", "Taco 12 pcs", 1, Decimal("11.00"), category="food")],
    ),
]
report = IngestionPipeline.from_config(store, resolver, config).run(orders)
print(f"Orders: {report.orders}, line items: {report.line_items}, skipped: {len(report.failures)}\n")

# Example 3: Query intent
print("Example 3: Items sold by product")
print("-" * 60)
outcome = execute_intent(
    store,
    {"metric": "items_sold", "groupBy": ["product"], "sortBy": "value", "sortOrder": "desc"},
    config=config,
)
for point in outcome.unwrap():
    print(f"{point.name:20} {point.value:>8.2f}")
print()

# Example 4: Chart request
print("Example 4: Chart request")
print("-" * 60)
response = run_chart_request(
    store,
    {
        "visualization": "bar",
        "chartTitle": "Revenue by location",
        "intent": {"metric": "revenue", "groupBy": ["location"]},
    },
).unwrap()
print(response.model_dump_json(by_alias=True, indent=2))

store.close()
