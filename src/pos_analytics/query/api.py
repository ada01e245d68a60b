"""Public API for answering query intents.

This module validates an intent, compiles it, runs the plan against a
QueryRunner and transforms the rows into chart points. Failures are
returned as typed Outcomes instead of raised.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

from pos_analytics.exceptions import PosAnalyticsError
from pos_analytics.query.compiler import compile_intent
from pos_analytics.query.intent import (
    ChartPoint,
    ChartResponse,
    QueryIntent,
    validate_chart_request,
    validate_intent,
)
from pos_analytics.query.transform import transform_rows
from pos_analytics.results import Outcome

if TYPE_CHECKING:
    from pos_analytics.config import AnalyticsConfig
    from pos_analytics.store.base import QueryRunner

logger = logging.getLogger(__name__)


def execute_intent(
    runner: QueryRunner,
    intent: Union[QueryIntent, Mapping[str, Any]],
    *,
    config: Optional[AnalyticsConfig] = None,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> Outcome[list[ChartPoint]]:
    """Answer a query intent with chart points.

    Args:
        runner: Store able to run compiled plans.
        intent: Validated QueryIntent or a raw payload to validate.
        config: Optional config for allowed filter values and the default
            timeout.
        timeout: Seconds before the query is aborted; overrides the config.
        cancel: Event that aborts the running query when set.

    Returns:
        Outcome with the chart points, or a failure whose kind is one of
        INVALID_INTENT, UNSUPPORTED_METRIC, QUERY or TIMEOUT.
    """
    if timeout is None and config is not None:
        timeout = config.query_timeout_seconds
    try:
        validated = validate_intent(intent, config)
        plan = compile_intent(validated)
        sql, params = plan.to_sql()
        logger.debug("Executing query: %s %s", sql, params)
        rows = runner.run_query(plan, timeout=timeout, cancel=cancel)
        logger.info("Query %s by %s returned %d row(s)", validated.metric.value, validated.group_by, len(rows))
        return Outcome.success(transform_rows(rows, validated.group_by))
    except PosAnalyticsError as e:
        logger.error("Query failed (%s): %s", e.kind.value, e)
        return Outcome.failure(e)


def run_chart_request(
    runner: QueryRunner,
    payload: Mapping[str, Any],
    *,
    config: Optional[AnalyticsConfig] = None,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> Outcome[ChartResponse]:
    """Validate a chart request, run its intent and attach the data rows."""
    try:
        request = validate_chart_request(payload, config)
    except PosAnalyticsError as e:
        logger.error("Invalid chart request: %s", e)
        return Outcome.failure(e)

    outcome = execute_intent(runner, request.intent, config=config, timeout=timeout, cancel=cancel)
    if not outcome.ok:
        return Outcome.failure(outcome.error)
    response = ChartResponse(
        visualization=request.visualization,
        intent=request.intent,
        chart_title=request.chart_title,
        explanation=request.explanation,
        data=outcome.value,
    )
    return Outcome.success(response)
