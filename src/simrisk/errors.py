"""Exception and warning types raised by the SimRisk engine.

Validation problems are raised before any random number is drawn, so a caller
catching one of these never receives partial results.
"""
from __future__ import annotations

from typing import Any


class SimRiskError(Exception):
    """Base class for all errors raised by :mod:`simrisk`."""


class InvalidConfigurationError(SimRiskError, ValueError):
    """Raised for a non-positive/non-integer iteration count or an empty item list."""


class InvalidRangeError(SimRiskError, ValueError):
    """Raised when an item violates ``a <= m <= b`` or carries non-numeric bounds.

    The offending item's position, id and raw triple are kept on the exception
    so callers can point the user at the bad row.
    """

    def __init__(self, message: str, index: int | None = None, item_id: Any = None, triple: tuple | None = None):
        super().__init__(message)
        self.index = index
        self.item_id = item_id
        self.triple = triple


class EmptyInputError(SimRiskError, ValueError):
    """Raised when statistics or variance decomposition receive an empty series."""


class NaNResultError(SimRiskError, ArithmeticError):
    """Raised when a finished run contains NaN totals."""

    def __init__(self, message: str, count: int = 0):
        super().__init__(message)
        self.count = count


class RangeToleranceWarning(UserWarning):
    """Issued when a total falls outside ``[sum(a), sum(b)]`` beyond the tolerance."""
