"""Compile validated query intents into query plans.

The plan shape is metric-driven:

- ``revenue`` and ``orders`` aggregate over orders and join line items only
  when a product/category dimension or filter needs them.
- ``items_sold`` and ``per_item_revenue`` aggregate over line items and are
  always inner-joined to their orders.
- Product and category dimensions/filters join the canonical tables and use
  the canonical display name, so names from different providers aggregate
  together.

Example:
    >>> plan = compile_intent(validate_intent({"metric": "items_sold", "groupBy": ["category"]}))
    >>> [r.value for r in plan.relations]
    ['order_items', 'orders', 'canonical_categories']
"""

from __future__ import annotations

import logging
from typing import Optional

from pos_analytics.exceptions import PosAnalyticsError, UnsupportedMetricError
from pos_analytics.query.dimensions import (
    DATE_RANGE_FILTER,
    DIMENSIONS,
    JOIN_ORDER,
    JOINS,
    MEMBERSHIP_FILTERS,
    METRICS,
    NAME_SORT_DIMENSIONS,
    TIME_DIMENSIONS,
)
from pos_analytics.query.intent import QueryIntent, SortBy, SortOrder
from pos_analytics.query.plan import OrderBy, Predicate, QueryPlan, Relation, SelectColumn
from pos_analytics.results import Outcome

logger = logging.getLogger(__name__)


def compile_intent(intent: QueryIntent) -> QueryPlan:
    """Translate a validated intent into a QueryPlan.

    Raises:
        UnsupportedMetricError: If the metric has no definition. Raised before
            any store access.
    """
    metric = METRICS.get(intent.metric)
    if metric is None:
        raise UnsupportedMetricError(f"Unknown metric: {intent.metric}")

    required: set[Relation] = set()
    columns: list[SelectColumn] = []
    group_by: list[str] = []
    for dimension in intent.group_by:
        spec = DIMENSIONS[dimension]
        required.update(spec.relations)
        columns.append(SelectColumn(spec.alias, spec.select_expression))
        group_by.append(spec.group_expression)

    predicates: list[Predicate] = []
    filters = intent.filters
    if filters.date_range is not None:
        start, end = filters.date_range.bounds()
        column = DATE_RANGE_FILTER.column
        required.update(DATE_RANGE_FILTER.relations)
        predicates.append(Predicate(f"{column} >= ? AND {column} <= ?", (start, end)))
    for field_name, spec in MEMBERSHIP_FILTERS.items():
        values = getattr(filters, field_name)
        if not values:
            continue
        required.update(spec.relations)
        placeholders = ", ".join("?" for _ in values)
        predicates.append(Predicate(f"{spec.column} IN ({placeholders})", tuple(values)))

    if metric.base is Relation.LINE_ITEMS:
        required.add(Relation.ORDERS)
    joins = [
        JOINS[(metric.base, relation)]
        for relation in JOIN_ORDER
        if relation in required and relation is not metric.base
    ]

    plan = QueryPlan(
        base=metric.base,
        value_expression=metric.expression,
        columns=columns,
        joins=joins,
        predicates=predicates,
        group_by=group_by,
        order_by=_order_by(intent),
        limit=intent.limit,
    )
    logger.debug("Compiled %s by %s over %s", intent.metric, intent.group_by, plan.relations)
    return plan


def compile_query(intent: QueryIntent) -> Outcome[QueryPlan]:
    """Compile an intent, reporting failures as a typed Outcome."""
    try:
        return Outcome.success(compile_intent(intent))
    except PosAnalyticsError as e:
        logger.error("Failed to compile intent: %s", e)
        return Outcome.failure(e)


def _order_by(intent: QueryIntent) -> Optional[OrderBy]:
    """Resolve the sort target; a target absent from the plan means no sort."""
    if intent.sort_by is None:
        return None
    descending = intent.sort_order is SortOrder.DESC

    expression: Optional[str] = None
    if intent.sort_by is SortBy.VALUE:
        expression = "value"
    elif intent.sort_by is SortBy.COUNT:
        expression = "COUNT(*)"
    elif intent.sort_by is SortBy.NAME:
        expression = _first_grouped(intent, NAME_SORT_DIMENSIONS)
    elif intent.sort_by is SortBy.DATE:
        expression = _first_grouped(intent, TIME_DIMENSIONS)

    if expression is None:
        logger.debug("Sort by %s has no column in this plan; leaving rows unsorted", intent.sort_by)
        return None
    return OrderBy(expression, descending)


def _first_grouped(intent: QueryIntent, candidates: tuple) -> Optional[str]:
    for dimension in candidates:
        if dimension in intent.group_by:
            return DIMENSIONS[dimension].group_expression
    return None
