"""Map raw aggregation rows to uniform ``{name, value}`` chart points."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Union

import numpy as np
import pandas as pd

from pos_analytics.query.dimensions import (
    CATEGORY_NAME,
    CREATED_AT,
    FULFILLMENT_METHOD,
    PRODUCT_NAME,
    PROVIDER,
    STORE_ID,
)
from pos_analytics.query.intent import ChartPoint
from pos_analytics.timestamps import format_time_label

TOTAL_LABEL = "Total"
LABEL_SEPARATOR = " - "

# Fixed label priority, independent of the intent's groupBy order
_LABEL_KEYS = (STORE_ID, PRODUCT_NAME, CATEGORY_NAME, FULFILLMENT_METHOD, PROVIDER)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and np.isnan(value):
        return False
    if value is pd.NaT:
        return False
    return str(value) != ""


def _numeric(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if np.isfinite(number) else 0.0


def row_label(row: Mapping[str, Any], group_by: Sequence[Any]) -> str:
    """Compose the display label of one row.

    Location, product/category name, fulfillment method, provider and the
    formatted timestamp are joined by " - " in that order, whichever are
    present. Falls back to "Total".
    """
    if not group_by:
        return TOTAL_LABEL
    parts = [str(row[key]) for key in _LABEL_KEYS if _present(row.get(key))]
    if _present(row.get(CREATED_AT)):
        parts.append(format_time_label(row[CREATED_AT]))
    return LABEL_SEPARATOR.join(parts) if parts else TOTAL_LABEL


def transform_rows(
    rows: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
    group_by: Sequence[Any],
) -> list[ChartPoint]:
    """Transform query rows into chart points.

    Args:
        rows: DataFrame returned by the store, or an iterable of row mappings.
        group_by: The intent's grouping dimensions.

    Returns:
        One ChartPoint per row; non-numeric or missing values become 0.

    Examples:
        >>> transform_rows([{"store_id": "downtown", "canonical_name": "Latte", "value": "12.5"}],
        ...                ["location", "product"])
        [ChartPoint(name='downtown - Latte', value=12.5)]
    """
    if isinstance(rows, pd.DataFrame):
        rows = rows.to_dict(orient="records")
    return [
        ChartPoint(name=row_label(row, group_by), value=_numeric(row.get("value")))
        for row in rows
    ]
