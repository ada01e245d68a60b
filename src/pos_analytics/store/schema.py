"""SQLite schema of the normalized order store.

Canonical tables are unique on ``normalized_name`` and mapping tables on
their normalized raw key; the resolver's insert-if-absent relies on these
indexes.
"""

from __future__ import annotations

from dataclasses import dataclass

from pos_analytics.resolver.models import EntityType

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS orders (
    order_id            TEXT PRIMARY KEY,
    store_id            TEXT NOT NULL,
    fulfillment_method  TEXT,
    created_at          TEXT,
    tip                 NUMERIC,
    tax                 NUMERIC,
    total               NUMERIC,
    provider            TEXT
);

CREATE TABLE IF NOT EXISTS canonical_items (
    id               TEXT PRIMARY KEY,
    canonical_name   TEXT NOT NULL,
    normalized_name  TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS canonical_items_normalized_name_idx
    ON canonical_items (normalized_name);

CREATE TABLE IF NOT EXISTS item_mappings (
    raw_name             TEXT NOT NULL,
    normalized_raw_name  TEXT NOT NULL,
    canonical_item_id    TEXT REFERENCES canonical_items (id),
    mapping_method       TEXT,
    confidence           REAL
);
CREATE UNIQUE INDEX IF NOT EXISTS item_mappings_normalized_raw_name_idx
    ON item_mappings (normalized_raw_name);

CREATE TABLE IF NOT EXISTS canonical_categories (
    id               TEXT PRIMARY KEY,
    canonical_name   TEXT NOT NULL,
    normalized_name  TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS canonical_categories_normalized_name_idx
    ON canonical_categories (normalized_name);

CREATE TABLE IF NOT EXISTS category_mappings (
    raw_category             TEXT NOT NULL,
    normalized_raw_category  TEXT NOT NULL,
    canonical_category_id    TEXT REFERENCES canonical_categories (id),
    mapping_method           TEXT,
    confidence               REAL
);
CREATE UNIQUE INDEX IF NOT EXISTS category_mappings_normalized_name_idx
    ON category_mappings (normalized_raw_category);

CREATE TABLE IF NOT EXISTS order_items (
    order_item_id          TEXT PRIMARY KEY,
    order_id               TEXT NOT NULL REFERENCES orders (order_id),
    item_id                TEXT NOT NULL,
    name                   TEXT,
    quantity               INTEGER,
    unit_price             NUMERIC,
    special_instructions   TEXT,
    category               TEXT,
    canonical_item_id      TEXT REFERENCES canonical_items (id),
    canonical_category_id  TEXT REFERENCES canonical_categories (id)
);

CREATE TABLE IF NOT EXISTS order_item_options (
    order_item_options_id  TEXT PRIMARY KEY,
    order_id               TEXT NOT NULL REFERENCES orders (order_id),
    order_item_id          TEXT NOT NULL REFERENCES order_items (order_item_id),
    item_id                TEXT NOT NULL,
    name                   TEXT,
    price                  NUMERIC
);
"""


@dataclass(frozen=True)
class EntityTables:
    """Table and column names of one canonical entity variant."""

    canonical: str
    mapping: str
    raw_column: str
    normalized_column: str
    id_column: str


ENTITY_TABLES: dict[EntityType, EntityTables] = {
    EntityType.ITEM: EntityTables(
        canonical="canonical_items",
        mapping="item_mappings",
        raw_column="raw_name",
        normalized_column="normalized_raw_name",
        id_column="canonical_item_id",
    ),
    EntityType.CATEGORY: EntityTables(
        canonical="canonical_categories",
        mapping="category_mappings",
        raw_column="raw_category",
        normalized_column="normalized_raw_category",
        id_column="canonical_category_id",
    ),
}
