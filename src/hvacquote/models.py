from __future__ import annotations

import math
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Optional

ZERO = Decimal("0")


def to_decimal(value: object) -> Optional[Decimal]:
    """Convert ``value`` to a finite :class:`Decimal`, or ``None`` when it is not numeric.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather than
    its binary expansion.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        result = Decimal(str(value))
    else:
        text = str(value).replace("$", "").replace(",", "").strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    if not result.is_finite():
        return None
    return result


@dataclass(frozen=True)
class CatalogEntry:
    """A supplier catalog row as offered by the catalog provider."""

    stock_number: str
    description: str
    unit_cost: Decimal
    unit: str = "each"
    category: str = ""
    subcategory: str = ""
    size: str = ""
    gauge: str = ""
    labor_hours: Decimal = ZERO


@dataclass(frozen=True)
class LineItem:
    """Catalog-sourced material entry with a frozen customer unit price.

    ``labor_hours`` is install time per unit; it scales with ``quantity`` and is
    charged at the estimate's labor rate.
    """

    id: str
    source_description: str
    category: str
    unit_cost: Decimal
    unit: str
    quantity: Decimal
    resolved_unit_price: Decimal
    multiplier: Decimal
    multiplier_source: str = "category"
    stock_number: str = ""
    labor_hours: Decimal = ZERO

    @property
    def line_total(self) -> Decimal:
        return self.resolved_unit_price * self.quantity

    @property
    def total_labor_hours(self) -> Decimal:
        return self.labor_hours * self.quantity


@dataclass(frozen=True)
class LaborItem:
    id: str
    description: str
    hours: Decimal
    rate: Decimal

    @property
    def cost(self) -> Decimal:
        return self.hours * self.rate


@dataclass(frozen=True)
class CustomItem:
    """Free-form charge not drawn from the catalog."""

    id: str
    description: str
    unit_price: Decimal
    quantity: Decimal

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Percentages:
    """The four composer percentages, each expressed as ``value / 100``."""

    overhead: Decimal = ZERO
    markup: Decimal = ZERO
    discount: Decimal = ZERO
    tax: Decimal = ZERO

    def as_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ProjectInfo:
    """Customer/project details carried for quotes; never part of the arithmetic."""

    project_name: str = ""
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    project_address: str = ""
    notes: str = ""


@dataclass(frozen=True)
class EstimateTotals:
    """Itemized result of one charge composition pass."""

    materials_subtotal: Decimal
    material_labor_hours: Decimal
    material_labor_cost: Decimal
    labor_subtotal: Decimal
    custom_subtotal: Decimal
    subtotal: Decimal
    overhead_amount: Decimal
    markup_base: Decimal
    markup_amount: Decimal
    pre_discount: Decimal
    discount_amount: Decimal
    after_discount: Decimal
    tax_amount: Decimal
    total: Decimal

    def as_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


__all__ = [
    "ZERO",
    "to_decimal",
    "CatalogEntry",
    "LineItem",
    "LaborItem",
    "CustomItem",
    "Percentages",
    "ProjectInfo",
    "EstimateTotals",
]
