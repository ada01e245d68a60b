"""UTC timestamp helpers shared by the store, the compiler and the transformer.

Order timestamps are stored as fixed-width UTC text so that string
comparison orders them chronologically and SQLite's date functions can
truncate them.

Examples:
    >>> format_utc("2024-03-10T18:30:00-05:00")
    '2024-03-10 23:30:00.000000'
    >>> day_bounds(date(2024, 3, 10), date(2024, 3, 10))
    ('2024-03-10 00:00:00.000000', '2024-03-10 23:59:59.999999')
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

import pandas as pd

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def to_utc(value: Any) -> Optional[pd.Timestamp]:
    """Parse a timestamp, treating naive values as UTC."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    ts = pd.Timestamp(value)
    if ts is pd.NaT:
        return None
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def format_utc(value: Any) -> Optional[str]:
    """Render a timestamp in the stored UTC text format."""
    ts = to_utc(value)
    return ts.strftime(TIMESTAMP_FORMAT) if ts is not None else None


def day_bounds(start: date, end: date) -> tuple[str, str]:
    """Inclusive UTC bounds covering ``start`` through the last instant of ``end``."""
    lower = datetime.combine(start, time.min)
    upper = datetime.combine(end, time.max)
    return lower.strftime(TIMESTAMP_FORMAT), upper.strftime(TIMESTAMP_FORMAT)


def format_time_label(value: Any) -> str:
    """Format a day- or hour-truncated value for a chart label.

    Day values ("2024-03-10" or a ``date``) keep day resolution; anything
    with a time component renders as "YYYY-MM-DD HH:MM".
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str) and len(value.strip()) <= 10:
        return value.strip()
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return str(value)
    if ts is pd.NaT:
        return str(value)
    return ts.strftime("%Y-%m-%d %H:%M")
