"""Explicit result values for the core operations.

``resolve``, ``compile_query`` and ``execute_intent`` return an Outcome
instead of raising, so that a pipeline can decide per error kind whether
to continue past an isolated failure.

Example:
    >>> outcome = resolver.resolve("Taco 12 pcs", EntityType.ITEM)
    >>> if outcome.ok:
    ...     canonical_id = outcome.value
    ... elif outcome.kind is ErrorKind.RESOLUTION:
    ...     logger.warning("Skipping line item: %s", outcome.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pos_analytics.exceptions import ErrorKind, PosAnalyticsError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value-or-error result of a core operation.

    Attributes:
        value: The operation's result when it succeeded (may itself be None,
            e.g. resolving an empty raw name).
        error: The typed error when it failed, otherwise None.
    """

    value: T | None = None
    error: PosAnalyticsError | None = None

    @classmethod
    def success(cls, value: T | None) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: PosAnalyticsError) -> Outcome[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        """Kind of the error, or None for a successful outcome."""
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T | None:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value
