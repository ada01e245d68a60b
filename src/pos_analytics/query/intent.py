"""Query intent model and validation.

An intent is the structured form of an analytical question produced by the
external language service. It is validated against closed enumerations
before it reaches the compiler; invalid values are rejected, never coerced.

Example:
    >>> intent = validate_intent({
    ...     "metric": "revenue",
    ...     "groupBy": ["location", "date"],
    ...     "filters": {"date_range": {"start": "2024-03-01", "end": "2024-03-10"}},
    ...     "sortBy": "date",
    ... })
    >>> intent.group_by
    [<Dimension.LOCATION: 'location'>, <Dimension.DATE: 'date'>]
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from pos_analytics.config import FULFILLMENT_METHODS, LOCATIONS
from pos_analytics.exceptions import IntentValidationError
from pos_analytics.timestamps import day_bounds

if TYPE_CHECKING:
    from pos_analytics.config import AnalyticsConfig

_DATE_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])$")


class Metric(str, Enum):
    REVENUE = "revenue"
    ORDERS = "orders"
    ITEMS_SOLD = "items_sold"
    PER_ITEM_REVENUE = "per_item_revenue"


class Dimension(str, Enum):
    LOCATION = "location"
    PRODUCT = "product"
    CATEGORY = "category"
    DATE = "date"
    HOUR = "hour"
    FULFILLMENT_METHOD = "fulfillment_method"
    PROVIDER = "provider"


class SortBy(str, Enum):
    VALUE = "value"
    COUNT = "count"
    NAME = "name"
    DATE = "date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Visualization(str, Enum):
    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    TABLE = "table"
    METRIC_CARD = "metric_card"


class DateRange(BaseModel):
    """Inclusive calendar-date range; ``end`` covers its whole day (UTC)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    start: date
    end: date

    @field_validator("start", "end", mode="before")
    @classmethod
    def _iso_date(cls, value: Any) -> Any:
        if isinstance(value, date):
            return value
        if not isinstance(value, str) or not _DATE_RE.match(value):
            raise ValueError("Invalid date format. Expected YYYY-MM-DD")
        return value

    @model_validator(mode="after")
    def _ordered(self) -> DateRange:
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")
        return self

    def bounds(self) -> tuple[str, str]:
        """Stored-format UTC bounds: start 00:00:00 through end 23:59:59.999999."""
        return day_bounds(self.start, self.end)


class Filters(BaseModel):
    """Conjunctive filters. Empty lists behave like absent filters."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    date_range: Optional[DateRange] = None
    locations: Optional[list[str]] = None
    fulfillment_methods: Optional[list[str]] = Field(default=None, alias="fulfillmentMethods")
    categories: Optional[list[str]] = None
    products: Optional[list[str]] = None
    providers: Optional[list[str]] = None

    @field_validator("locations")
    @classmethod
    def _known_locations(cls, value: Optional[list[str]], info: ValidationInfo) -> Optional[list[str]]:
        allowed = (info.context or {}).get("locations", LOCATIONS)
        return _check_members(value, allowed, "location")

    @field_validator("fulfillment_methods")
    @classmethod
    def _known_methods(cls, value: Optional[list[str]], info: ValidationInfo) -> Optional[list[str]]:
        allowed = (info.context or {}).get("fulfillment_methods", FULFILLMENT_METHODS)
        return _check_members(value, allowed, "fulfillment method")


def _check_members(
    value: Optional[list[str]],
    allowed: tuple[str, ...],
    label: str,
) -> Optional[list[str]]:
    if value is None:
        return value
    unknown = [v for v in value if v not in allowed]
    if unknown:
        raise ValueError(f"Unknown {label}(s) {unknown}; expected one of {list(allowed)}")
    return value


class QueryIntent(BaseModel):
    """Validated analytical question: metric, dimensions, filters, sort, limit."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    metric: Metric
    group_by: list[Dimension] = Field(alias="groupBy", min_length=1)
    filters: Filters = Field(default_factory=Filters)
    limit: Optional[int] = Field(default=None, gt=0, strict=True)
    sort_by: Optional[SortBy] = Field(default=None, alias="sortBy")
    sort_order: Optional[SortOrder] = Field(default=None, alias="sortOrder")

    @field_validator("group_by")
    @classmethod
    def _distinct_dimensions(cls, value: list[Dimension]) -> list[Dimension]:
        if len(set(value)) != len(value):
            raise ValueError("groupBy must not repeat a dimension")
        if Dimension.DATE in value and Dimension.HOUR in value:
            raise ValueError("groupBy cannot contain both date and hour")
        return value

    def to_payload(self) -> dict[str, Any]:
        """Wire-format dict (camelCase keys, absent fields omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChartPoint(BaseModel):
    """One chart row: a display label and its numeric value."""

    name: str
    value: float


class ChartRequest(BaseModel):
    """Intent plus the chart metadata requested by the front end."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    visualization: Visualization
    intent: QueryIntent
    chart_title: str = Field(alias="chartTitle")
    explanation: Optional[str] = None


class ChartResponse(ChartRequest):
    """ChartRequest echoed back with its ``data`` rows."""

    data: list[ChartPoint] = Field(default_factory=list)


def _context(config: Optional[AnalyticsConfig]) -> dict[str, Any]:
    if config is None:
        return {}
    return {"locations": config.locations, "fulfillment_methods": config.fulfillment_methods}


def _issues(error: ValidationError) -> list[dict[str, Any]]:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


def validate_intent(
    payload: Union[Mapping[str, Any], QueryIntent],
    config: Optional[AnalyticsConfig] = None,
) -> QueryIntent:
    """Validate a raw intent payload.

    Args:
        payload: Decoded JSON intent (or an already-built QueryIntent, which
            is re-validated).
        config: Optional config supplying the allowed locations and
            fulfillment methods.

    Returns:
        The validated QueryIntent.

    Raises:
        IntentValidationError: With one issue per rejected field.
    """
    if isinstance(payload, QueryIntent):
        payload = payload.to_payload()
    try:
        return QueryIntent.model_validate(payload, context=_context(config))
    except ValidationError as e:
        issues = _issues(e)
        summary = "; ".join(f"{i['field']}: {i['message']}" for i in issues)
        raise IntentValidationError(f"Invalid query intent: {summary}", issues) from e


def validate_chart_request(
    payload: Mapping[str, Any],
    config: Optional[AnalyticsConfig] = None,
) -> ChartRequest:
    """Validate a chart request (visualization, title, intent)."""
    try:
        return ChartRequest.model_validate(payload, context=_context(config))
    except ValidationError as e:
        issues = _issues(e)
        summary = "; ".join(f"{i['field']}: {i['message']}" for i in issues)
        raise IntentValidationError(f"Invalid chart request: {summary}", issues) from e


def intent_json_schema() -> dict[str, Any]:
    """JSON schema of ChartRequest, as handed to the intent producer's prompt."""
    return ChartRequest.model_json_schema(by_alias=True)
