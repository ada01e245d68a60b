"""Unified configuration for POS Analytics.

This module provides a single configuration class shared by the resolver,
the ingestion pipeline, the query layer and the CLI.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from pos_analytics.exceptions import ConfigError

DEFAULT_ITEM_THRESHOLD = 0.8
DEFAULT_CATEGORY_THRESHOLD = 0.75
DEFAULT_QUERY_TIMEOUT = 30.0

# Closed enumerations accepted by the intent validator
LOCATIONS = ("airport", "downtown", "mall", "university")
FULFILLMENT_METHODS = ("delivery", "pickup", "dine_in")

IN_MEMORY = ":memory:"


@dataclass
class AnalyticsConfig:
    """Settings used across resolution, ingestion and querying.

    Attributes:
        database_path: SQLite database file, or ":memory:".
        item_threshold: Minimum similarity for a fuzzy item match.
        category_threshold: Minimum similarity for a fuzzy category match.
        query_timeout_seconds: Abort queries running longer than this
            (None disables the timeout).
        ingest_workers: Number of orders ingested concurrently.
        locations: Allowed values for the locations filter.
        fulfillment_methods: Allowed values for the fulfillmentMethods filter.
    """

    database_path: Path | str = IN_MEMORY
    item_threshold: float = DEFAULT_ITEM_THRESHOLD
    category_threshold: float = DEFAULT_CATEGORY_THRESHOLD
    query_timeout_seconds: float | None = DEFAULT_QUERY_TIMEOUT
    ingest_workers: int = 1
    locations: tuple[str, ...] = field(default=LOCATIONS)
    fulfillment_methods: tuple[str, ...] = field(default=FULFILLMENT_METHODS)

    def __post_init__(self) -> None:
        if isinstance(self.database_path, str) and self.database_path != IN_MEMORY:
            self.database_path = Path(self.database_path)
        for name in ("item_threshold", "category_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1], got {value}")
        if self.query_timeout_seconds is not None and self.query_timeout_seconds <= 0:
            raise ConfigError(
                f"query_timeout_seconds must be positive, got {self.query_timeout_seconds}"
            )
        if self.ingest_workers < 1:
            raise ConfigError(f"ingest_workers must be >= 1, got {self.ingest_workers}")

    @classmethod
    def from_env(cls) -> AnalyticsConfig:
        """Build a config from POS_ANALYTICS_* environment variables.

        Unset variables fall back to the defaults. A timeout of 0 disables
        the query timeout.

        Raises:
            ConfigError: If a variable cannot be parsed.

        Examples:
            >>> os.environ["POS_ANALYTICS_DB"] = "data/pos.sqlite"
            >>> AnalyticsConfig.from_env().database_path
            PosixPath('data/pos.sqlite')
        """
        try:
            timeout = float(os.environ.get("POS_ANALYTICS_QUERY_TIMEOUT", DEFAULT_QUERY_TIMEOUT))
            return cls(
                database_path=os.environ.get("POS_ANALYTICS_DB", IN_MEMORY),
                item_threshold=float(
                    os.environ.get("POS_ANALYTICS_ITEM_THRESHOLD", DEFAULT_ITEM_THRESHOLD)
                ),
                category_threshold=float(
                    os.environ.get("POS_ANALYTICS_CATEGORY_THRESHOLD", DEFAULT_CATEGORY_THRESHOLD)
                ),
                query_timeout_seconds=timeout or None,
                ingest_workers=int(os.environ.get("POS_ANALYTICS_WORKERS", "1")),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid POS_ANALYTICS_* environment value: {e}") from e
