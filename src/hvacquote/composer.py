"""
Charge composition: item collections plus percentages into itemized totals.

The order is fixed. Overhead is charged on raw cost, markup on cost plus
overhead, the discount comes off the marked-up price, and tax is charged on
the discounted price. All arithmetic stays in ``Decimal``; rounding to cents
belongs to presentation code only.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from .errors import InvalidCostError, InvalidPercentageError
from .models import ZERO, CustomItem, EstimateTotals, LaborItem, LineItem, Percentages, to_decimal

HUNDRED = Decimal("100")

logger = logging.getLogger(__name__)


def validate_percentage(value: object, field_name: str) -> Decimal:
    """Return ``value`` as a non-negative Decimal. There is no upper bound."""
    pct = to_decimal(value)
    if pct is None or pct < 0:
        raise InvalidPercentageError(value, field=field_name)
    return pct


def normalize_percentages(percentages: Percentages) -> Percentages:
    return Percentages(
        **{name: validate_percentage(value, name) for name, value in percentages.as_dict().items()}
    )


def compose_totals(
    line_items: Iterable[LineItem],
    labor_items: Iterable[LaborItem],
    custom_items: Iterable[CustomItem],
    percentages: Percentages,
    labor_rate: object = ZERO,
) -> EstimateTotals:
    """Compose itemized totals.

    Install hours carried on line items are charged at ``labor_rate`` and land
    in ``labor_subtotal`` next to the hand-entered labor items.
    """
    pct = normalize_percentages(percentages)
    rate = to_decimal(labor_rate)
    if rate is None or rate < 0:
        raise InvalidCostError(labor_rate, field="labor_rate")
    line_items = list(line_items)

    materials_subtotal = sum((item.line_total for item in line_items), ZERO)
    material_labor_hours = sum((item.total_labor_hours for item in line_items), ZERO)
    material_labor_cost = material_labor_hours * rate
    labor_subtotal = sum((item.cost for item in labor_items), ZERO) + material_labor_cost
    custom_subtotal = sum((item.total for item in custom_items), ZERO)
    subtotal = materials_subtotal + labor_subtotal + custom_subtotal

    overhead_amount = subtotal * pct.overhead / HUNDRED
    markup_base = subtotal + overhead_amount
    markup_amount = markup_base * pct.markup / HUNDRED
    pre_discount = markup_base + markup_amount
    discount_amount = pre_discount * pct.discount / HUNDRED
    after_discount = pre_discount - discount_amount
    tax_amount = after_discount * pct.tax / HUNDRED
    total = after_discount + tax_amount

    logger.debug(
        "composed totals: subtotal=%s overhead=%s markup=%s discount=%s tax=%s total=%s",
        subtotal,
        overhead_amount,
        markup_amount,
        discount_amount,
        tax_amount,
        total,
    )
    return EstimateTotals(
        materials_subtotal=materials_subtotal,
        material_labor_hours=material_labor_hours,
        material_labor_cost=material_labor_cost,
        labor_subtotal=labor_subtotal,
        custom_subtotal=custom_subtotal,
        subtotal=subtotal,
        overhead_amount=overhead_amount,
        markup_base=markup_base,
        markup_amount=markup_amount,
        pre_discount=pre_discount,
        discount_amount=discount_amount,
        after_discount=after_discount,
        tax_amount=tax_amount,
        total=total,
    )


__all__ = ["compose_totals", "validate_percentage", "normalize_percentages"]
