"""Ingestion of normalized orders into the store.

A failed connectivity check aborts the run. A failure inserting one order,
one line item or one option is isolated: it is logged, recorded in the
IngestReport and skipped, so later records still process. Which failures
are isolated is decided by error kind.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from pos_analytics.exceptions import ErrorKind, PosAnalyticsError
from pos_analytics.ingest.models import LineItemPayload, OrderPayload
from pos_analytics.resolver.models import EntityType
from pos_analytics.store.records import OrderItemOption, OrderLineItem, OrderRecord

if TYPE_CHECKING:
    from pos_analytics.config import AnalyticsConfig
    from pos_analytics.resolver.resolver import CanonicalResolver
    from pos_analytics.store.base import OrderStore

logger = logging.getLogger(__name__)

# Failure kinds that skip the current record; anything else aborts the run
CONTINUE_KINDS = frozenset({ErrorKind.STORE, ErrorKind.DUPLICATE, ErrorKind.RESOLUTION})


@dataclass
class IngestFailure:
    """One skipped record.

    Attributes:
        stage: "order", "line_item" or "option".
        key: Identifier of the skipped record.
        kind: Error kind that caused the skip.
        message: Error message.
    """

    stage: str
    key: str
    kind: ErrorKind
    message: str


@dataclass
class IngestReport:
    """Counts of written records plus the skipped ones."""

    orders: int = 0
    line_items: int = 0
    options: int = 0
    failures: list[IngestFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def merge(self, other: IngestReport) -> None:
        self.orders += other.orders
        self.line_items += other.line_items
        self.options += other.options
        self.failures.extend(other.failures)


class IngestionPipeline:
    """Writes orders, resolving each line item's item and category names.

    Line items of one order are processed sequentially; orders may be
    processed concurrently (``workers > 1``), which relies on the store's
    atomic insert-if-absent for canonical entities.

    Args:
        store: Order store collaborator.
        resolver: Canonical resolver (usually on the same store).
        workers: Number of orders processed concurrently.
    """

    def __init__(self, store: OrderStore, resolver: CanonicalResolver, workers: int = 1) -> None:
        self.store = store
        self.resolver = resolver
        self.workers = max(1, workers)

    @classmethod
    def from_config(
        cls,
        store: OrderStore,
        resolver: CanonicalResolver,
        config: AnalyticsConfig,
    ) -> IngestionPipeline:
        return cls(store, resolver, workers=config.ingest_workers)

    def check_connectivity(self) -> None:
        """Raise ConnectivityError if the store's order tables are unreachable."""
        self.store.ping()

    def run(self, orders: Iterable[OrderPayload]) -> IngestReport:
        """Ingest every order and return the combined report.

        Raises:
            ConnectivityError: If the connectivity check fails (nothing is written).
            PosAnalyticsError: For failure kinds outside CONTINUE_KINDS.
        """
        self.check_connectivity()
        report = IngestReport()
        if self.workers == 1:
            for order in orders:
                report.merge(self.ingest_order(order))
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                for order_report in pool.map(self.ingest_order, orders):
                    report.merge(order_report)

        logger.info(
            "Ingested %d order(s), %d line item(s), %d option(s); %d skipped",
            report.orders,
            report.line_items,
            report.options,
            len(report.failures),
        )
        return report

    def ingest_order(self, order: OrderPayload) -> IngestReport:
        """Insert one order with its line items and options."""
        report = IngestReport()
        record = OrderRecord(
            order_id=order.order_id,
            store_id=order.store_id,
            fulfillment_method=order.fulfillment_method,
            created_at=order.created_at,
            tip=order.tip,
            tax=order.tax,
            total=order.total,
            provider=order.provider,
        )
        try:
            self.store.insert_order(record)
        except PosAnalyticsError as e:
            self._skip(report, "order", order.order_id, e)
            return report
        report.orders += 1
        logger.debug("Inserted order %s", order.order_id)

        for payload in order.line_items:
            line_item = self._resolve_line_item(report, order.order_id, payload)
            if line_item is None:
                continue
            try:
                self.store.insert_line_item(line_item)
            except PosAnalyticsError as e:
                self._skip(report, "line_item", f"{order.order_id}/{payload.item_id}", e)
                continue
            report.line_items += 1

            for option in payload.options:
                try:
                    self.store.insert_option(
                        OrderItemOption(
                            order_id=order.order_id,
                            line_item_id=line_item.line_item_id,
                            item_id=option.item_id,
                            name=option.name,
                            price=option.price,
                        )
                    )
                except PosAnalyticsError as e:
                    self._skip(report, "option", f"{order.order_id}/{option.item_id}", e)
                    continue
                report.options += 1
        return report

    def _resolve_line_item(
        self,
        report: IngestReport,
        order_id: str,
        payload: LineItemPayload,
    ) -> Optional[OrderLineItem]:
        key = f"{order_id}/{payload.item_id}"
        item = self.resolver.resolve(payload.name, EntityType.ITEM)
        if not item.ok:
            self._skip(report, "line_item", key, item.error)
            return None
        category = self.resolver.resolve(payload.category, EntityType.CATEGORY)
        if not category.ok:
            self._skip(report, "line_item", key, category.error)
            return None
        return OrderLineItem(
            order_id=order_id,
            item_id=payload.item_id,
            name=payload.name,
            quantity=payload.quantity,
            unit_price=payload.unit_price,
            special_instructions=payload.special_instructions,
            category=payload.category,
            canonical_item_id=item.value,
            canonical_category_id=category.value,
        )

    def _skip(self, report: IngestReport, stage: str, key: str, error: PosAnalyticsError) -> None:
        if error.kind not in CONTINUE_KINDS:
            raise error
        logger.warning("Skipping %s %s (%s): %s", stage, key, error.kind.value, error)
        report.failures.append(IngestFailure(stage, key, error.kind, str(error)))
