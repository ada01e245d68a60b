"""Storage collaborators: interfaces, an in-memory store and a SQLite store."""

from pos_analytics.store.base import CanonicalStore, OrderStore, QueryRunner
from pos_analytics.store.memory import InMemoryStore
from pos_analytics.store.records import OrderItemOption, OrderLineItem, OrderRecord
from pos_analytics.store.sqlite import SQLiteStore

__all__ = [
    "CanonicalStore",
    "InMemoryStore",
    "OrderItemOption",
    "OrderLineItem",
    "OrderRecord",
    "OrderStore",
    "QueryRunner",
    "SQLiteStore",
]
