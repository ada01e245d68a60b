"""Normalized order payloads handed over by provider adapters.

Adapters (Square, Toast, DoorDash exports) map their own JSON into these
dataclasses: GUIDs extracted, amounts already converted from integer minor
units with ``minor_to_currency``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union

CENTS = Decimal("0.01")


def minor_to_currency(amount: Optional[Union[int, str]]) -> Decimal:
    """Convert integer minor-currency units to a 2-decimal amount.

    Examples:
        >>> minor_to_currency(1250)
        Decimal('12.50')
        >>> minor_to_currency(None)
        Decimal('0.00')
    """
    if amount is None:
        return Decimal("0.00")
    return (Decimal(str(amount)) / 100).quantize(CENTS, rounding=ROUND_HALF_UP)


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class OptionPayload:
    item_id: str
    name: Optional[str]
    price: Decimal = Decimal("0.00")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OptionPayload:
        return cls(item_id=str(data["item_id"]), name=data.get("name"), price=_decimal(data.get("price")))


@dataclass
class LineItemPayload:
    """One line item as mapped by an adapter.

    Attributes:
        item_id: Provider line-item id.
        name: Raw display name (resolved to a canonical item).
        quantity: Units sold.
        unit_price: Decimal currency amount.
        category: Raw category name, or None (resolved to a canonical category).
        special_instructions: Free-text notes.
        options: Modifiers attached to the line.
    """

    item_id: str
    name: Optional[str]
    quantity: int
    unit_price: Decimal
    category: Optional[str] = None
    special_instructions: Optional[str] = None
    options: list[OptionPayload] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineItemPayload:
        return cls(
            item_id=str(data["item_id"]),
            name=data.get("name"),
            quantity=int(data.get("quantity") or 0),
            unit_price=_decimal(data.get("unit_price")),
            category=data.get("category"),
            special_instructions=data.get("special_instructions"),
            options=[OptionPayload.from_dict(o) for o in data.get("options") or []],
        )


@dataclass
class OrderPayload:
    """One order with its line items, as mapped by an adapter."""

    order_id: str
    store_id: str
    fulfillment_method: Optional[str]
    created_at: Any
    tip: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    provider: Optional[str] = None
    line_items: list[LineItemPayload] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrderPayload:
        return cls(
            order_id=str(data["order_id"]),
            store_id=str(data["store_id"]),
            fulfillment_method=data.get("fulfillment_method"),
            created_at=data.get("created_at"),
            tip=_decimal(data.get("tip")),
            tax=_decimal(data.get("tax")),
            total=_decimal(data.get("total")),
            provider=data.get("provider"),
            line_items=[LineItemPayload.from_dict(i) for i in data.get("line_items") or []],
        )


def load_orders_json(path: Union[str, Path]) -> list[OrderPayload]:
    """Read a JSON list of normalized orders.

    Raises:
        ValueError: If the file is not a JSON list of order objects or an
            amount is not numeric.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of orders")
    try:
        return [OrderPayload.from_dict(o) for o in data]
    except (KeyError, TypeError, InvalidOperation) as e:
        raise ValueError(f"Malformed order in {path}: {e}") from e
