"""Domain-specific exceptions for POS Analytics.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from PosAnalyticsError for easy catching, and each
one carries an ErrorKind so callers can dispatch on the kind of failure
instead of on the exception class.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Distinguishable failure kinds reported by the core operations."""

    CONFIG = "config"
    STORE = "store"
    CONNECTIVITY = "connectivity"
    DUPLICATE = "duplicate"
    RESOLUTION = "resolution"
    INVALID_INTENT = "invalid_intent"
    UNSUPPORTED_METRIC = "unsupported_metric"
    COMPILE = "compile"
    QUERY = "query"
    TIMEOUT = "timeout"


class PosAnalyticsError(Exception):
    """Base exception for all POS Analytics errors.

    Users can catch this exception to handle any POS Analytics error.
    """

    kind: ErrorKind = ErrorKind.STORE


class ConfigError(PosAnalyticsError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided (thresholds, timeouts, workers)
    - Environment variables cannot be parsed
    """

    kind = ErrorKind.CONFIG


class StoreError(PosAnalyticsError):
    """Raised when the storage collaborator fails."""

    kind = ErrorKind.STORE


class ConnectivityError(StoreError):
    """Raised when the store cannot be reached or its tables are missing."""

    kind = ErrorKind.CONNECTIVITY


class DuplicateKeyError(StoreError):
    """Raised when an insert violates a uniqueness constraint."""

    kind = ErrorKind.DUPLICATE


class ResolutionError(PosAnalyticsError):
    """Raised when a canonical entity cannot be created for a raw name."""

    kind = ErrorKind.RESOLUTION


class IntentValidationError(PosAnalyticsError):
    """Raised when a query intent fails validation.

    Attributes:
        issues: List of ``{"field": ..., "message": ...}`` dicts, one per
            rejected value.
    """

    kind = ErrorKind.INVALID_INTENT

    def __init__(self, message: str, issues: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class CompileError(PosAnalyticsError):
    """Raised when an intent cannot be compiled into a query plan."""

    kind = ErrorKind.COMPILE


class UnsupportedMetricError(CompileError):
    """Raised when the compiler has no definition for the requested metric."""

    kind = ErrorKind.UNSUPPORTED_METRIC


class QueryExecutionError(PosAnalyticsError):
    """Raised when the store fails while running a compiled plan."""

    kind = ErrorKind.QUERY


class QueryTimeoutError(QueryExecutionError):
    """Raised when a running query exceeds its timeout or is cancelled."""

    kind = ErrorKind.TIMEOUT
