"""
Error taxonomy for the estimate engine.

Every failure is a local validation failure raised at the offending call.
Errors carry a structured :class:`ErrorKind` plus the offending value; turning
them into customer-facing wording is left to whoever renders the estimate.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_MULTIPLIER = "INVALID_MULTIPLIER"
    INVALID_PERCENTAGE = "INVALID_PERCENTAGE"
    UNKNOWN_CATEGORY = "UNKNOWN_CATEGORY"
    NOT_FOUND = "NOT_FOUND"
    INVALID_COST = "INVALID_COST"


class EstimateError(Exception):
    """Base exception for all engine validation errors."""

    kind: ErrorKind

    def __init__(self, value: object, field: Optional[str] = None):
        self.value = value
        self.field = field
        label = f"{self.kind.value}[{field}]" if field else self.kind.value
        super().__init__(f"{label}: {value!r}")


class InvalidQuantityError(EstimateError):
    """Quantity (or labor hours) outside the accepted range."""

    kind = ErrorKind.INVALID_QUANTITY


class InvalidMultiplierError(EstimateError):
    """Multiplier not in (0, 1]."""

    kind = ErrorKind.INVALID_MULTIPLIER


class InvalidPercentageError(EstimateError):
    kind = ErrorKind.INVALID_PERCENTAGE


class UnknownCategoryError(EstimateError):
    """No multiplier entry for the category and no override supplied."""

    kind = ErrorKind.UNKNOWN_CATEGORY


class NotFoundError(EstimateError):
    kind = ErrorKind.NOT_FOUND


class InvalidCostError(EstimateError):
    """Negative unit cost, labor rate or custom unit price."""

    kind = ErrorKind.INVALID_COST


class StaleEstimateError(Exception):
    """Raised when derived totals are read between a mutation and its recompute."""


class ConfigurationError(Exception):
    """Raised when pricing configuration loading or validation fails."""


class CatalogError(Exception):
    """Raised when a catalog file cannot be loaded or holds invalid rows."""


__all__ = [
    "ErrorKind",
    "EstimateError",
    "InvalidQuantityError",
    "InvalidMultiplierError",
    "InvalidPercentageError",
    "UnknownCategoryError",
    "NotFoundError",
    "InvalidCostError",
    "StaleEstimateError",
    "ConfigurationError",
    "CatalogError",
]
