"""SQLite-backed store for canonical entities, orders and query execution.

One connection is shared behind a lock. Canonical creation uses
``INSERT ... ON CONFLICT(normalized_name) DO NOTHING`` followed by a
re-select in the same transaction, which gives the resolver its atomic
insert-or-return-existing primitive even across processes sharing the
database file.

Example:
    >>> store = SQLiteStore("data/pos.sqlite")
    >>> store.ping()
    >>> resolver = CanonicalResolver(store)
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union
from uuid import uuid4

import pandas as pd

from pos_analytics.config import IN_MEMORY
from pos_analytics.exceptions import (
    ConnectivityError,
    DuplicateKeyError,
    QueryExecutionError,
    QueryTimeoutError,
    StoreError,
)
from pos_analytics.resolver.models import CanonicalEntity, EntityType, MappingMethod, NameMapping
from pos_analytics.store.base import CanonicalStore, OrderStore, QueryRunner
from pos_analytics.store.schema import ENTITY_TABLES, SCHEMA_SQL
from pos_analytics.timestamps import format_utc

if TYPE_CHECKING:
    from pos_analytics.config import AnalyticsConfig
    from pos_analytics.query.plan import QueryPlan
    from pos_analytics.store.records import OrderItemOption, OrderLineItem, OrderRecord

logger = logging.getLogger(__name__)

# SQLite VM instructions between timeout/cancel checks
PROGRESS_STEPS = 1000


def _money(value: Optional[Union[Decimal, float, int]]) -> Optional[str]:
    return None if value is None else str(value)


class SQLiteStore(CanonicalStore, OrderStore, QueryRunner):
    """Normalized order store on a SQLite database.

    Args:
        database_path: Database file, or ":memory:".
        create_schema: Create missing tables and indexes on open.
    """

    def __init__(self, database_path: Union[str, Path] = IN_MEMORY, create_schema: bool = True) -> None:
        self.database_path = database_path
        self._lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(str(database_path), timeout=30, check_same_thread=False)
            self._conn.execute("PRAGMA foreign_keys = ON")
            if create_schema:
                self._conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise ConnectivityError(f"Could not open SQLite store {database_path}: {e}") from e
        logger.debug("Opened SQLite store %s", database_path)

    @classmethod
    def from_config(cls, config: AnalyticsConfig) -> SQLiteStore:
        return cls(config.database_path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Canonical entities and mappings
    # ------------------------------------------------------------------

    def find_mapping(self, entity_type: EntityType, normalized_raw_name: str) -> Optional[NameMapping]:
        t = ENTITY_TABLES[entity_type]
        sql = (
            f"SELECT {t.raw_column}, {t.normalized_column}, {t.id_column}, mapping_method, confidence "
            f"FROM {t.mapping} WHERE {t.normalized_column} = ?"
        )
        with self._lock:
            try:
                row = self._conn.execute(sql, (normalized_raw_name,)).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Mapping lookup failed in {t.mapping}: {e}") from e
        if row is None:
            return None
        return NameMapping(
            raw_name=row[0],
            normalized_raw_name=row[1],
            canonical_id=row[2],
            method=MappingMethod(row[3]),
            confidence=float(row[4]),
        )

    def list_canonical(self, entity_type: EntityType) -> list[CanonicalEntity]:
        t = ENTITY_TABLES[entity_type]
        sql = f"SELECT id, canonical_name, normalized_name FROM {t.canonical} ORDER BY rowid"
        with self._lock:
            try:
                rows = self._conn.execute(sql).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Could not list {t.canonical}: {e}") from e
        return [CanonicalEntity(id=r[0], canonical_name=r[1], normalized_name=r[2]) for r in rows]

    def insert_canonical_if_absent(
        self,
        entity_type: EntityType,
        canonical_name: str,
        normalized_name: str,
    ) -> tuple[CanonicalEntity, bool]:
        t = ENTITY_TABLES[entity_type]
        with self._lock:
            try:
                with self._conn:
                    cursor = self._conn.execute(
                        f"INSERT INTO {t.canonical} (id, canonical_name, normalized_name) "
                        "VALUES (?, ?, ?) ON CONFLICT (normalized_name) DO NOTHING",
                        (str(uuid4()), canonical_name, normalized_name),
                    )
                    created = cursor.rowcount == 1
                    row = self._conn.execute(
                        f"SELECT id, canonical_name, normalized_name FROM {t.canonical} "
                        "WHERE normalized_name = ?",
                        (normalized_name,),
                    ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"Could not insert into {t.canonical}: {e}") from e
        return CanonicalEntity(id=row[0], canonical_name=row[1], normalized_name=row[2]), created

    def insert_mapping(self, entity_type: EntityType, mapping: NameMapping) -> bool:
        t = ENTITY_TABLES[entity_type]
        sql = (
            f"INSERT INTO {t.mapping} "
            f"({t.raw_column}, {t.normalized_column}, {t.id_column}, mapping_method, confidence) "
            f"VALUES (?, ?, ?, ?, ?) ON CONFLICT ({t.normalized_column}) DO NOTHING"
        )
        params = (
            mapping.raw_name,
            mapping.normalized_raw_name,
            mapping.canonical_id,
            mapping.method.value,
            mapping.confidence,
        )
        with self._lock:
            try:
                with self._conn:
                    cursor = self._conn.execute(sql, params)
            except sqlite3.Error as e:
                raise StoreError(f"Could not insert into {t.mapping}: {e}") from e
        return cursor.rowcount == 1

    def mappings(self, entity_type: EntityType) -> list[NameMapping]:
        """Return all mappings of a type, in insertion order."""
        t = ENTITY_TABLES[entity_type]
        sql = (
            f"SELECT {t.raw_column}, {t.normalized_column}, {t.id_column}, mapping_method, confidence "
            f"FROM {t.mapping} ORDER BY rowid"
        )
        with self._lock:
            try:
                rows = self._conn.execute(sql).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Could not list {t.mapping}: {e}") from e
        return [
            NameMapping(r[0], r[1], r[2], MappingMethod(r[3]), float(r[4]))
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def ping(self) -> None:
        with self._lock:
            try:
                self._conn.execute("SELECT 1 FROM orders LIMIT 1").fetchall()
            except sqlite3.Error as e:
                raise ConnectivityError(f"Could not access orders table: {e}") from e

    def _insert(self, sql: str, params: tuple[Any, ...], what: str) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(sql, params)
            except sqlite3.IntegrityError as e:
                if "UNIQUE" not in str(e):
                    raise StoreError(f"Could not insert {what}: {e}") from e
                raise DuplicateKeyError(f"Could not insert {what}: {e}") from e
            except sqlite3.Error as e:
                raise StoreError(f"Could not insert {what}: {e}") from e

    def insert_order(self, order: OrderRecord) -> None:
        try:
            created_at = format_utc(order.created_at)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Could not insert order {order.order_id}: bad created_at {order.created_at!r}") from e
        self._insert(
            "INSERT INTO orders (order_id, store_id, fulfillment_method, created_at, "
            "tip, tax, total, provider) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                order.order_id,
                order.store_id,
                order.fulfillment_method,
                created_at,
                _money(order.tip),
                _money(order.tax),
                _money(order.total),
                order.provider,
            ),
            f"order {order.order_id}",
        )

    def insert_line_item(self, item: OrderLineItem) -> None:
        self._insert(
            "INSERT INTO order_items (order_item_id, order_id, item_id, name, quantity, "
            "unit_price, special_instructions, category, canonical_item_id, "
            "canonical_category_id) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                item.line_item_id,
                item.order_id,
                item.item_id,
                item.name,
                item.quantity,
                _money(item.unit_price),
                item.special_instructions,
                item.category,
                item.canonical_item_id,
                item.canonical_category_id,
            ),
            f"line item {item.item_id} of order {item.order_id}",
        )

    def insert_option(self, option: OrderItemOption) -> None:
        self._insert(
            "INSERT INTO order_item_options (order_item_options_id, order_id, order_item_id, "
            "item_id, name, price) VALUES (?, ?, ?, ?, ?, ?)",
            (
                option.option_id,
                option.order_id,
                option.line_item_id,
                option.item_id,
                option.name,
                _money(option.price),
            ),
            f"option {option.item_id} of order {option.order_id}",
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def run_query(
        self,
        plan: QueryPlan,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> pd.DataFrame:
        if cancel is not None and cancel.is_set():
            raise QueryTimeoutError("Query cancelled before it started")

        sql, params = plan.to_sql()
        deadline = time.monotonic() + timeout if timeout is not None else None

        def _should_abort() -> bool:
            if cancel is not None and cancel.is_set():
                return True
            return deadline is not None and time.monotonic() > deadline

        with self._lock:
            self._conn.set_progress_handler(lambda: 1 if _should_abort() else 0, PROGRESS_STEPS)
            try:
                return pd.read_sql_query(sql, self._conn, params=params)
            except (sqlite3.Error, pd.errors.DatabaseError) as e:
                if _should_abort():
                    raise QueryTimeoutError(f"Query aborted after timeout/cancellation: {e}") from e
                raise QueryExecutionError(f"Query failed: {e}") from e
            finally:
                self._conn.set_progress_handler(None, 0)
