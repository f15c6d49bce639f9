from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .errors import InvalidCostError
from .models import to_decimal
from .pricing_config import MultiplierTable, validate_multiplier

SOURCE_CATEGORY = "category"
SOURCE_OVERRIDE = "override"


@dataclass(frozen=True)
class ResolvedPrice:
    """Customer-facing unit price, the validated cost and the multiplier that produced it."""

    unit_price: Decimal
    unit_cost: Decimal
    multiplier: Decimal
    source: str
    below_cost: bool = False


def validate_unit_cost(value: object, field_name: str = "unit_cost") -> Decimal:
    cost = to_decimal(value)
    if cost is None or cost < 0:
        raise InvalidCostError(value, field=field_name)
    return cost


def resolve_unit_price(
    category: str,
    unit_cost: object,
    table: MultiplierTable,
    override_multiplier: Optional[object] = None,
) -> ResolvedPrice:
    """Derive the customer unit price as ``unit_cost / multiplier``.

    An override replaces the table lookup entirely. Multipliers must lie in
    ``(0, 1]``; a category missing from ``table`` without an override raises
    :class:`~hvacquote.errors.UnknownCategoryError`.
    """
    cost = validate_unit_cost(unit_cost)
    if override_multiplier is not None:
        multiplier = validate_multiplier(override_multiplier, field_name="override_multiplier")
        source = SOURCE_OVERRIDE
    else:
        multiplier = table.multiplier_for(category)
        source = SOURCE_CATEGORY
    price = cost / multiplier
    return ResolvedPrice(
        unit_price=price,
        unit_cost=cost,
        multiplier=multiplier,
        source=source,
        below_cost=price < cost,
    )


__all__ = ["ResolvedPrice", "resolve_unit_price", "validate_unit_cost", "SOURCE_CATEGORY", "SOURCE_OVERRIDE"]
