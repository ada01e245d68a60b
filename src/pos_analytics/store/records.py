"""Normalized order records as written to the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4


@dataclass(frozen=True)
class OrderRecord:
    """One ingested order. ``order_id`` is the primary key.

    ``created_at`` is interpreted as UTC when it carries no timezone.
    """

    order_id: str
    store_id: str
    fulfillment_method: Optional[str]
    created_at: Optional[datetime]
    tip: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    provider: Optional[str] = None


@dataclass(frozen=True)
class OrderLineItem:
    """One line item of an order, linked to its canonical item and category."""

    order_id: str
    item_id: str
    name: Optional[str]
    quantity: int
    unit_price: Decimal
    special_instructions: Optional[str] = None
    category: Optional[str] = None
    canonical_item_id: Optional[str] = None
    canonical_category_id: Optional[str] = None
    line_item_id: str = field(default_factory=lambda: str(uuid4()))


@dataclass(frozen=True)
class OrderItemOption:
    """A modifier/option attached to a line item."""

    order_id: str
    line_item_id: str
    item_id: str
    name: Optional[str]
    price: Decimal
    option_id: str = field(default_factory=lambda: str(uuid4()))
