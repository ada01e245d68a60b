"""Storage interfaces required by the resolver, the ingestion pipeline
and the query layer.

Implementations are passed explicitly into CanonicalResolver,
IngestionPipeline and execute_intent; nothing in the package holds a
process-wide connection.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import pandas as pd

from pos_analytics.resolver.models import CanonicalEntity, EntityType, NameMapping

if TYPE_CHECKING:
    from pos_analytics.query.plan import QueryPlan
    from pos_analytics.store.records import OrderItemOption, OrderLineItem, OrderRecord


class CanonicalStore(ABC):
    """Key-indexed store for canonical entities and name mappings.

    Both tables are unique on their normalized key. All methods raise
    StoreError on failure.
    """

    @abstractmethod
    def find_mapping(self, entity_type: EntityType, normalized_raw_name: str) -> Optional[NameMapping]:
        """Return the mapping stored for a normalized raw name, if any."""

    @abstractmethod
    def list_canonical(self, entity_type: EntityType) -> list[CanonicalEntity]:
        """Return every canonical entity of a type, in insertion order."""

    @abstractmethod
    def insert_canonical_if_absent(
        self,
        entity_type: EntityType,
        canonical_name: str,
        normalized_name: str,
    ) -> tuple[CanonicalEntity, bool]:
        """Atomically insert a canonical entity unless its normalized name exists.

        Returns:
            Tuple of (entity, created). When another entity already holds
            ``normalized_name`` that entity is returned with created=False.
        """

    @abstractmethod
    def insert_mapping(self, entity_type: EntityType, mapping: NameMapping) -> bool:
        """Insert a mapping unless its normalized raw name already exists.

        Returns:
            True if the row was written, False if one was already present.
        """


class OrderStore(ABC):
    """Write side for normalized orders."""

    @abstractmethod
    def ping(self) -> None:
        """Check that the store is reachable and its tables exist.

        Raises:
            ConnectivityError: If the check fails.
        """

    @abstractmethod
    def insert_order(self, order: OrderRecord) -> None:
        """Insert an order; raises DuplicateKeyError if the id exists."""

    @abstractmethod
    def insert_line_item(self, item: OrderLineItem) -> None:
        """Insert a line item of an already-stored order."""

    @abstractmethod
    def insert_option(self, option: OrderItemOption) -> None:
        """Insert an option of an already-stored line item."""


class QueryRunner(ABC):
    """Read side: executes compiled query plans."""

    @abstractmethod
    def run_query(
        self,
        plan: QueryPlan,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> pd.DataFrame:
        """Run a plan and return its rows.

        Args:
            plan: Compiled query plan.
            timeout: Seconds after which the query is aborted.
            cancel: Event that aborts the query when set.

        Raises:
            QueryTimeoutError: On timeout or cancellation.
            QueryExecutionError: On any other store failure.
        """
