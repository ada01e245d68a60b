"""Command-line entry point for POS Analytics.

Usage:
    pos-analytics --db data/pos.sqlite init-db
    pos-analytics --db data/pos.sqlite ingest orders.json
    pos-analytics --db data/pos.sqlite query intent.json
    pos-analytics schema
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from pos_analytics.config import AnalyticsConfig
from pos_analytics.exceptions import PosAnalyticsError
from pos_analytics.ingest import IngestionPipeline, load_orders_json
from pos_analytics.query import execute_intent, intent_json_schema, run_chart_request
from pos_analytics.resolver import CanonicalResolver
from pos_analytics.store import SQLiteStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pos-analytics",
        description="Canonical name resolution and chart queries over normalized POS orders.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database file (default: $POS_ANALYTICS_DB or an in-memory database).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Orders ingested concurrently (default: $POS_ANALYTICS_WORKERS or 1).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create the tables and indexes.")

    ingest = sub.add_parser("ingest", help="Ingest a JSON list of normalized orders.")
    ingest.add_argument("file", type=Path, help="Orders JSON file.")

    query = sub.add_parser("query", help="Run a query intent or chart request.")
    query.add_argument("file", type=Path, help="Intent or chart request JSON file.")

    sub.add_parser("schema", help="Print the query intent JSON schema.")
    return parser


def _load_config(args: argparse.Namespace) -> AnalyticsConfig:
    config = AnalyticsConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.db is not None:
        overrides["database_path"] = args.db
    if args.workers is not None:
        overrides["ingest_workers"] = args.workers
    return replace(config, **overrides) if overrides else config


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _run_ingest(store: SQLiteStore, config: AnalyticsConfig, path: Path) -> int:
    orders = load_orders_json(path)
    resolver = CanonicalResolver.from_config(store, config)
    pipeline = IngestionPipeline.from_config(store, resolver, config)
    report = pipeline.run(orders)

    print(f"Orders     : {report.orders}")
    print(f"Line items : {report.line_items}")
    print(f"Options    : {report.options}")
    print(f"Skipped    : {len(report.failures)}")
    for failure in report.failures:
        print(f"  - {failure.stage} {failure.key} [{failure.kind.value}] {failure.message}")
    return 0


def _run_query(store: SQLiteStore, config: AnalyticsConfig, path: Path) -> int:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict) and "intent" in payload:
        outcome = run_chart_request(store, payload, config=config)
        if outcome.ok:
            _print_json(outcome.value.model_dump(mode="json", by_alias=True))
    else:
        outcome = execute_intent(store, payload, config=config)
        if outcome.ok:
            _print_json([point.model_dump(mode="json") for point in outcome.value])

    if not outcome.ok:
        print(f"Query failed [{outcome.kind.value}]: {outcome.error}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    if args.command == "schema":
        _print_json(intent_json_schema())
        return 0

    try:
        config = _load_config(args)
        with SQLiteStore.from_config(config) as store:
            if args.command == "init-db":
                store.ping()
                print(f"Initialized database at {config.database_path}")
                return 0
            if args.command == "ingest":
                return _run_ingest(store, config, args.file)
            return _run_query(store, config, args.file)
    except PosAnalyticsError as e:
        logger.error("%s failed (%s): %s", args.command, e.kind.value, e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
