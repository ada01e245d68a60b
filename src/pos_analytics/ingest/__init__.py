"""Ingestion of adapter-mapped orders with canonical name resolution."""

from pos_analytics.ingest.models import (
    LineItemPayload,
    OptionPayload,
    OrderPayload,
    load_orders_json,
    minor_to_currency,
)
from pos_analytics.ingest.pipeline import (
    CONTINUE_KINDS,
    IngestFailure,
    IngestionPipeline,
    IngestReport,
)

__all__ = [
    "CONTINUE_KINDS",
    "IngestFailure",
    "IngestReport",
    "IngestionPipeline",
    "LineItemPayload",
    "OptionPayload",
    "OrderPayload",
    "load_orders_json",
    "minor_to_currency",
]
