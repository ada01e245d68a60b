"""Query intents: validation, compilation, execution and chart transformation.

Example:
    >>> from pos_analytics.store import SQLiteStore
    >>> from pos_analytics.query import execute_intent
    >>>
    >>> store = SQLiteStore("data/pos.sqlite")
    >>> outcome = execute_intent(store, {"metric": "revenue", "groupBy": ["location"]})
    >>> outcome.value
    [ChartPoint(name='downtown', value=1520.5), ...]
"""

from pos_analytics.query.api import execute_intent, run_chart_request
from pos_analytics.query.compiler import compile_intent, compile_query
from pos_analytics.query.intent import (
    ChartPoint,
    ChartRequest,
    ChartResponse,
    DateRange,
    Dimension,
    Filters,
    Metric,
    QueryIntent,
    SortBy,
    SortOrder,
    Visualization,
    intent_json_schema,
    validate_chart_request,
    validate_intent,
)
from pos_analytics.query.plan import QueryPlan, Relation
from pos_analytics.query.transform import transform_rows

__all__ = [
    "ChartPoint",
    "ChartRequest",
    "ChartResponse",
    "DateRange",
    "Dimension",
    "Filters",
    "Metric",
    "QueryIntent",
    "QueryPlan",
    "Relation",
    "SortBy",
    "SortOrder",
    "Visualization",
    "compile_intent",
    "compile_query",
    "execute_intent",
    "intent_json_schema",
    "run_chart_request",
    "transform_rows",
    "validate_chart_request",
    "validate_intent",
]
