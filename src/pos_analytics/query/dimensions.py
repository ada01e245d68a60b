"""Descriptor tables driving the compiler.

Each metric, grouping dimension and filter kind maps to a fixed
descriptor naming its SQL expression and the relations it needs. The
compiler only looks entries up and unions their required relations.
"""

from __future__ import annotations

from dataclasses import dataclass

from pos_analytics.query.intent import Dimension, Metric
from pos_analytics.query.plan import Join, Relation

ORDER_TIME = "orders.created_at"
DAY_EXPR = f"date({ORDER_TIME})"
HOUR_EXPR = f"strftime('%Y-%m-%d %H:00:00', {ORDER_TIME})"

# Row keys read by the result transformer
STORE_ID = "store_id"
PRODUCT_NAME = "canonical_name"
CATEGORY_NAME = "canonical_category"
FULFILLMENT_METHOD = "fulfillment_method"
PROVIDER = "provider"
CREATED_AT = "created_at"


@dataclass(frozen=True)
class MetricSpec:
    expression: str
    base: Relation


@dataclass(frozen=True)
class DimensionSpec:
    alias: str
    select_expression: str
    group_expression: str
    relations: tuple[Relation, ...]


@dataclass(frozen=True)
class FilterSpec:
    column: str
    relations: tuple[Relation, ...]


_PRODUCT = (Relation.LINE_ITEMS, Relation.CANONICAL_ITEMS)
_CATEGORY = (Relation.LINE_ITEMS, Relation.CANONICAL_CATEGORIES)
_ORDER = (Relation.ORDERS,)

METRICS: dict[Metric, MetricSpec] = {
    Metric.REVENUE: MetricSpec("SUM(orders.total)", Relation.ORDERS),
    # DISTINCT keeps a line-item join from counting an order once per line
    Metric.ORDERS: MetricSpec("COUNT(DISTINCT orders.order_id)", Relation.ORDERS),
    Metric.ITEMS_SOLD: MetricSpec("SUM(order_items.quantity)", Relation.LINE_ITEMS),
    Metric.PER_ITEM_REVENUE: MetricSpec(
        "SUM(order_items.unit_price * order_items.quantity)", Relation.LINE_ITEMS
    ),
}

DIMENSIONS: dict[Dimension, DimensionSpec] = {
    Dimension.LOCATION: DimensionSpec(STORE_ID, "orders.store_id", "orders.store_id", _ORDER),
    Dimension.PRODUCT: DimensionSpec(
        PRODUCT_NAME, "canonical_items.canonical_name", "canonical_items.canonical_name", _PRODUCT
    ),
    Dimension.CATEGORY: DimensionSpec(
        CATEGORY_NAME,
        "canonical_categories.canonical_name",
        "canonical_categories.canonical_name",
        _CATEGORY,
    ),
    Dimension.DATE: DimensionSpec(CREATED_AT, DAY_EXPR, DAY_EXPR, _ORDER),
    Dimension.HOUR: DimensionSpec(CREATED_AT, HOUR_EXPR, HOUR_EXPR, _ORDER),
    Dimension.FULFILLMENT_METHOD: DimensionSpec(
        FULFILLMENT_METHOD, "orders.fulfillment_method", "orders.fulfillment_method", _ORDER
    ),
    Dimension.PROVIDER: DimensionSpec(PROVIDER, "orders.provider", "orders.provider", _ORDER),
}

# Keyed by Filters field name; date_range is a range filter, the rest are membership filters
DATE_RANGE_FILTER = FilterSpec(ORDER_TIME, _ORDER)
MEMBERSHIP_FILTERS: dict[str, FilterSpec] = {
    "locations": FilterSpec("orders.store_id", _ORDER),
    "fulfillment_methods": FilterSpec("orders.fulfillment_method", _ORDER),
    "providers": FilterSpec("orders.provider", _ORDER),
    "products": FilterSpec("canonical_items.canonical_name", _PRODUCT),
    "categories": FilterSpec("canonical_categories.canonical_name", _CATEGORY),
}

# Join to a relation, given the base relation of the plan
JOINS: dict[tuple[Relation, Relation], Join] = {
    (Relation.LINE_ITEMS, Relation.ORDERS): Join(
        Relation.ORDERS, "INNER", "order_items.order_id = orders.order_id"
    ),
    (Relation.ORDERS, Relation.LINE_ITEMS): Join(
        Relation.LINE_ITEMS, "LEFT", "order_items.order_id = orders.order_id"
    ),
    (Relation.ORDERS, Relation.CANONICAL_ITEMS): Join(
        Relation.CANONICAL_ITEMS, "LEFT", "order_items.canonical_item_id = canonical_items.id"
    ),
    (Relation.LINE_ITEMS, Relation.CANONICAL_ITEMS): Join(
        Relation.CANONICAL_ITEMS, "LEFT", "order_items.canonical_item_id = canonical_items.id"
    ),
    (Relation.ORDERS, Relation.CANONICAL_CATEGORIES): Join(
        Relation.CANONICAL_CATEGORIES,
        "LEFT",
        "order_items.canonical_category_id = canonical_categories.id",
    ),
    (Relation.LINE_ITEMS, Relation.CANONICAL_CATEGORIES): Join(
        Relation.CANONICAL_CATEGORIES,
        "LEFT",
        "order_items.canonical_category_id = canonical_categories.id",
    ),
}

# Joins are applied in this order so that order_items precedes the canonical tables
JOIN_ORDER = (
    Relation.ORDERS,
    Relation.LINE_ITEMS,
    Relation.CANONICAL_ITEMS,
    Relation.CANONICAL_CATEGORIES,
)

# Sort targets: name prefers the product name, then the category name
NAME_SORT_DIMENSIONS = (Dimension.PRODUCT, Dimension.CATEGORY)
TIME_DIMENSIONS = (Dimension.DATE, Dimension.HOUR)
