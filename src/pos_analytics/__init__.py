"""POS Analytics - canonical name resolution and chart queries for POS orders.

This package unifies item and category names coming from several POS
providers and answers structured chart questions over the normalized orders:

- **Resolution**: raw names are normalized and mapped to canonical items and
  categories (exact mapping, fuzzy match or creation)
- **Ingestion**: adapter-mapped orders are written with resolved canonical ids
- **Querying**: validated query intents compile to parameterized SQL and the
  rows are transformed into ``{name, value}`` chart points

Module Structure:
    pos_analytics.normalize: Name normalization and similarity scoring
    pos_analytics.resolver: CanonicalResolver and its models
    pos_analytics.store: Store interfaces, InMemoryStore and SQLiteStore
    pos_analytics.ingest: IngestionPipeline and order payloads
    pos_analytics.query: Intent validation, compiler, transformer and API
    pos_analytics.config: AnalyticsConfig

Quick Start:
    >>> from pos_analytics import AnalyticsConfig, CanonicalResolver, SQLiteStore
    >>> from pos_analytics.query import execute_intent
    >>>
    >>> config = AnalyticsConfig.from_env()
    >>> store = SQLiteStore.from_config(config)
    >>> resolver = CanonicalResolver.from_config(store, config)
    >>>
    >>> resolver.resolve("Chicken Wings 6pcs", EntityType.ITEM).value
    '3f1c...'
    >>>
    >>> outcome = execute_intent(store, {"metric": "revenue", "groupBy": ["product"], "limit": 5})
    >>> outcome.value
    [ChartPoint(name='Chicken Wings', value=812.0), ...]
"""

__version__ = "0.1.0"

from pos_analytics.config import AnalyticsConfig
from pos_analytics.exceptions import ErrorKind, PosAnalyticsError
from pos_analytics.resolver import CanonicalResolver, EntityType
from pos_analytics.results import Outcome
from pos_analytics.store import InMemoryStore, SQLiteStore

__all__ = [
    "AnalyticsConfig",
    "CanonicalResolver",
    "EntityType",
    "ErrorKind",
    "InMemoryStore",
    "Outcome",
    "PosAnalyticsError",
    "SQLiteStore",
    "__version__",
]
