"""Query plan: the compiled, store-agnostic shape of an aggregation query.

A plan lists its base relation, joins, selected columns (in groupBy order,
followed by the aggregated ``value``), conjunctive predicates, grouping,
ordering and limit. ``to_sql`` renders it as parameterized SQLite SQL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Relation(str, Enum):
    """Tables of the normalized order schema."""

    ORDERS = "orders"
    LINE_ITEMS = "order_items"
    CANONICAL_ITEMS = "canonical_items"
    CANONICAL_CATEGORIES = "canonical_categories"


@dataclass(frozen=True)
class Join:
    relation: Relation
    kind: str  # "INNER" | "LEFT"
    on: str

    def to_sql(self) -> str:
        return f"{self.kind} JOIN {self.relation.value} ON {self.on}"


@dataclass(frozen=True)
class SelectColumn:
    alias: str
    expression: str


@dataclass(frozen=True)
class Predicate:
    sql: str
    params: tuple[Any, ...] = ()


@dataclass(frozen=True)
class OrderBy:
    expression: str
    descending: bool = False


@dataclass
class QueryPlan:
    """Compiled aggregation query.

    Attributes:
        base: Relation the metric aggregates over.
        value_expression: Aggregate expression selected as ``value``.
        columns: Dimension columns, in the intent's groupBy order.
        joins: Joins in application order.
        predicates: Filter conditions, combined with AND.
        group_by: Grouping expressions, in groupBy order.
        order_by: Sort target, or None when unsorted.
        limit: Maximum number of rows, applied after sorting.
    """

    base: Relation
    value_expression: str
    columns: list[SelectColumn] = field(default_factory=list)
    joins: list[Join] = field(default_factory=list)
    predicates: list[Predicate] = field(default_factory=list)
    group_by: list[str] = field(default_factory=list)
    order_by: Optional[OrderBy] = None
    limit: Optional[int] = None

    @property
    def relations(self) -> list[Relation]:
        """Base relation followed by joined relations, in join order."""
        return [self.base] + [j.relation for j in self.joins]

    @property
    def column_aliases(self) -> list[str]:
        return [c.alias for c in self.columns] + ["value"]

    def to_sql(self) -> tuple[str, list[Any]]:
        """Render the plan as SQLite SQL plus positional parameters."""
        select = [f"{c.expression} AS {c.alias}" for c in self.columns]
        select.append(f"{self.value_expression} AS value")
        lines = [f"SELECT {', '.join(select)}", f"FROM {self.base.value}"]
        lines.extend(j.to_sql() for j in self.joins)

        params: list[Any] = []
        if self.predicates:
            lines.append("WHERE " + " AND ".join(f"({p.sql})" for p in self.predicates))
            for p in self.predicates:
                params.extend(p.params)
        if self.group_by:
            lines.append("GROUP BY " + ", ".join(self.group_by))
        if self.order_by is not None:
            direction = "DESC" if self.order_by.descending else "ASC"
            lines.append(f"ORDER BY {self.order_by.expression} {direction}")
        if self.limit is not None:
            lines.append("LIMIT ?")
            params.append(self.limit)
        return "\n".join(lines), params
