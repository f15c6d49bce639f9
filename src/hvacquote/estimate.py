"""
Estimate aggregate: item collections with synchronous recompute.

Every mutating method validates its inputs before touching any state and
recomputes all derived totals before returning. Callers can
therefore never observe totals that disagree with the current items and
percentages. Items themselves are frozen; every change swaps in a new
record. The class holds no locks; concurrent callers must serialize
their mutations.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple, Union

from .composer import compose_totals, normalize_percentages, validate_percentage
from .errors import InvalidQuantityError, NotFoundError, StaleEstimateError
from .models import (
    ZERO,
    CatalogEntry,
    CustomItem,
    EstimateTotals,
    LaborItem,
    LineItem,
    Percentages,
    ProjectInfo,
    to_decimal,
)
from .pricing_config import MultiplierTable, PricingConfig
from .resolver import resolve_unit_price, validate_unit_cost

Item = Union[LineItem, LaborItem, CustomItem]

logger = logging.getLogger(__name__)


class RecomputeState(str, Enum):
    STALE = "STALE"
    CONSISTENT = "CONSISTENT"


def _new_id() -> str:
    return uuid.uuid4().hex


def validate_quantity(value: object, field_name: str = "quantity") -> Decimal:
    """Quantities must be strictly positive; non-positive values are rejected, not clamped."""
    qty = to_decimal(value)
    if qty is None or qty <= 0:
        raise InvalidQuantityError(value, field=field_name)
    return qty


def validate_hours(value: object, field_name: str = "hours") -> Decimal:
    hours = to_decimal(value)
    if hours is None or hours < 0:
        raise InvalidQuantityError(value, field=field_name)
    return hours


class Estimate:
    """Aggregate root for one calculator session."""

    def __init__(
        self,
        multipliers: MultiplierTable,
        percentages: Optional[Percentages] = None,
        project: Optional[ProjectInfo] = None,
        labor_rate: object = ZERO,
    ):
        self._multipliers = multipliers
        self._percentages = normalize_percentages(percentages or Percentages())
        self._labor_rate = validate_unit_cost(labor_rate, field_name="labor_rate")
        self.project = project or ProjectInfo()
        self._line_items: List[LineItem] = []
        self._labor_items: List[LaborItem] = []
        self._custom_items: List[CustomItem] = []
        self._totals: Optional[EstimateTotals] = None
        self._state = RecomputeState.STALE
        self.recompute()

    @classmethod
    def from_config(
        cls,
        pricing: PricingConfig,
        overrides: Optional[dict] = None,
        project: Optional[ProjectInfo] = None,
    ) -> "Estimate":
        """Start an empty estimate with the configured default percentages and labor rate."""
        return cls(
            pricing.multipliers,
            pricing.default_percentages(overrides),
            project=project,
            labor_rate=pricing.labor_rate,
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def multipliers(self) -> MultiplierTable:
        return self._multipliers

    @property
    def percentages(self) -> Percentages:
        return self._percentages

    @property
    def labor_rate(self) -> Decimal:
        """Hourly rate charged for install hours carried on line items."""
        return self._labor_rate

    @property
    def line_items(self) -> Tuple[LineItem, ...]:
        return tuple(self._line_items)

    @property
    def labor_items(self) -> Tuple[LaborItem, ...]:
        return tuple(self._labor_items)

    @property
    def custom_items(self) -> Tuple[CustomItem, ...]:
        return tuple(self._custom_items)

    @property
    def state(self) -> RecomputeState:
        return self._state

    @property
    def is_consistent(self) -> bool:
        return self._state is RecomputeState.CONSISTENT

    @property
    def totals(self) -> EstimateTotals:
        if self._state is not RecomputeState.CONSISTENT or self._totals is None:
            raise StaleEstimateError("Estimate totals read before recompute finished")
        return self._totals

    @property
    def total(self) -> Decimal:
        return self.totals.total

    def get_item(self, item_id: str) -> Item:
        collection, index = self._locate(item_id)
        return collection[index]

    # ------------------------------------------------------------------
    # Recompute trigger
    # ------------------------------------------------------------------

    def recompute(self) -> EstimateTotals:
        """Run the charge composer over the current inputs and mark the estimate consistent."""
        self._totals = compose_totals(
            self._line_items,
            self._labor_items,
            self._custom_items,
            self._percentages,
            self._labor_rate,
        )
        self._state = RecomputeState.CONSISTENT
        return self._totals

    def _commit(self) -> None:
        self._state = RecomputeState.STALE
        self.recompute()

    def _locate(self, item_id: str) -> Tuple[list, int]:
        for collection in (self._line_items, self._labor_items, self._custom_items):
            for index, item in enumerate(collection):
                if item.id == item_id:
                    return collection, index
        raise NotFoundError(item_id, field="id")

    def _locate_typed(self, item_id: str, kind: type, field_name: str) -> Tuple[list, int]:
        collection, index = self._locate(item_id)
        if not isinstance(collection[index], kind):
            raise NotFoundError(item_id, field=field_name)
        return collection, index

    def _swap(self, collection: list, index: int, item: Item) -> Item:
        collection[index] = item
        self._commit()
        return item

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_line_item(
        self,
        entry: CatalogEntry,
        quantity: object = 1,
        override_multiplier: Optional[object] = None,
        labor_hours: Optional[object] = None,
    ) -> LineItem:
        """Price ``entry`` through the multiplier table (or the override) and append it.

        ``labor_hours`` replaces the entry's per-unit install hours when given.
        """
        qty = validate_quantity(quantity)
        hours = validate_hours(entry.labor_hours if labor_hours is None else labor_hours, "labor_hours")
        resolved = resolve_unit_price(entry.category, entry.unit_cost, self._multipliers, override_multiplier)
        item = LineItem(
            id=_new_id(),
            source_description=entry.description,
            category=entry.category,
            unit_cost=resolved.unit_cost,
            unit=entry.unit,
            quantity=qty,
            resolved_unit_price=resolved.unit_price,
            multiplier=resolved.multiplier,
            multiplier_source=resolved.source,
            stock_number=entry.stock_number,
            labor_hours=hours,
        )
        self._line_items.append(item)
        self._commit()
        logger.debug("added line item %s (%s x %s @ %s)", item.id, item.source_description, qty, item.resolved_unit_price)
        return item

    def add_labor_item(self, description: str, hours: object, rate: object) -> LaborItem:
        item = LaborItem(
            id=_new_id(),
            description=description,
            hours=validate_hours(hours),
            rate=validate_unit_cost(rate, field_name="rate"),
        )
        self._labor_items.append(item)
        self._commit()
        logger.debug("added labor item %s (%s h @ %s)", item.id, item.hours, item.rate)
        return item

    def add_custom_item(self, description: str, unit_price: object, quantity: object = 1) -> CustomItem:
        item = CustomItem(
            id=_new_id(),
            description=description,
            unit_price=validate_unit_cost(unit_price, field_name="unit_price"),
            quantity=validate_quantity(quantity),
        )
        self._custom_items.append(item)
        self._commit()
        logger.debug("added custom item %s (%s)", item.id, description)
        return item

    def update_quantity(self, item_id: str, new_quantity: object) -> Item:
        """Replace an item's quantity (hours for labor items) and recompute.

        Install hours on a line item follow the new quantity.
        """
        collection, index = self._locate(item_id)
        item = collection[index]
        if isinstance(item, LaborItem):
            updated = replace(item, hours=validate_hours(new_quantity))
        else:
            updated = replace(item, quantity=validate_quantity(new_quantity))
        return self._swap(collection, index, updated)

    def update_labor_item(
        self,
        item_id: str,
        *,
        description: Optional[str] = None,
        hours: Optional[object] = None,
        rate: Optional[object] = None,
    ) -> LaborItem:
        collection, index = self._locate_typed(item_id, LaborItem, "labor_item")
        item = collection[index]
        updated = replace(
            item,
            description=item.description if description is None else description,
            hours=item.hours if hours is None else validate_hours(hours),
            rate=item.rate if rate is None else validate_unit_cost(rate, field_name="rate"),
        )
        return self._swap(collection, index, updated)

    def update_custom_item(
        self,
        item_id: str,
        *,
        description: Optional[str] = None,
        unit_price: Optional[object] = None,
        quantity: Optional[object] = None,
    ) -> CustomItem:
        collection, index = self._locate_typed(item_id, CustomItem, "custom_item")
        item = collection[index]
        updated = replace(
            item,
            description=item.description if description is None else description,
            unit_price=(
                item.unit_price if unit_price is None else validate_unit_cost(unit_price, field_name="unit_price")
            ),
            quantity=item.quantity if quantity is None else validate_quantity(quantity),
        )
        return self._swap(collection, index, updated)

    def recalculate_line_item(self, item_id: str, override_multiplier: Optional[object] = None) -> LineItem:
        """Re-resolve a line item's frozen unit price.

        Without an override the current category multiplier is used, which also
        drops any override applied when the item was added.
        """
        collection, index = self._locate_typed(item_id, LineItem, "line_item")
        item = collection[index]
        resolved = resolve_unit_price(item.category, item.unit_cost, self._multipliers, override_multiplier)
        updated = replace(
            item,
            resolved_unit_price=resolved.unit_price,
            multiplier=resolved.multiplier,
            multiplier_source=resolved.source,
        )
        return self._swap(collection, index, updated)

    def remove_item(self, item_id: str) -> Item:
        """Remove an item of any kind. Unknown ids raise :class:`NotFoundError`."""
        collection, index = self._locate(item_id)
        item = collection.pop(index)
        self._commit()
        logger.debug("removed item %s", item_id)
        return item

    def set_percentages(
        self,
        overhead: Optional[object] = None,
        markup: Optional[object] = None,
        discount: Optional[object] = None,
        tax: Optional[object] = None,
    ) -> Percentages:
        """Change any subset of the four percentages; all-or-nothing."""
        current = self._percentages
        updated = Percentages(
            overhead=validate_percentage(overhead, "overhead") if overhead is not None else current.overhead,
            markup=validate_percentage(markup, "markup") if markup is not None else current.markup,
            discount=validate_percentage(discount, "discount") if discount is not None else current.discount,
            tax=validate_percentage(tax, "tax") if tax is not None else current.tax,
        )
        self._percentages = updated
        self._commit()
        return updated

    def set_labor_rate(self, rate: object) -> Decimal:
        self._labor_rate = validate_unit_cost(rate, field_name="labor_rate")
        self._commit()
        return self._labor_rate


__all__ = ["Estimate", "RecomputeState", "validate_quantity", "validate_hours"]
