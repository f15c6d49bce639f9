"""Read-only supplier catalog backed by a CSV sheet."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .errors import CatalogError
from .models import ZERO, CatalogEntry, to_decimal

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "catalog.csv"

CATALOG_COLUMNS = (
    "stock_number",
    "description",
    "unit_cost",
    "unit",
    "category",
    "subcategory",
    "size",
    "gauge",
    "labor_hours",
)
REQUIRED_COLUMNS = ("description", "unit_cost", "category")
SEARCH_COLUMNS = ("description", "stock_number", "category", "subcategory", "size")

logger = logging.getLogger(__name__)


def _prepare_frame(raw: pd.DataFrame, source: str) -> pd.DataFrame:
    frame = raw.copy()
    frame.columns = [str(col).strip().lower() for col in frame.columns]
    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise CatalogError(f"Catalog {source} is missing columns: {', '.join(missing)}")
    for col in CATALOG_COLUMNS:
        if col not in frame.columns:
            frame[col] = ""
    frame = frame.loc[:, list(CATALOG_COLUMNS)].fillna("")
    for col in CATALOG_COLUMNS:
        frame[col] = frame[col].astype(str).str.strip()

    costs = frame["unit_cost"].map(to_decimal)
    unpriced = costs.isna()
    if unpriced.any():
        logger.warning(
            "Skipping %d catalog rows without a numeric unit cost in %s",
            int(unpriced.sum()),
            source,
        )
        frame = frame.loc[~unpriced].copy()
        costs = costs.loc[~unpriced]
    negative = costs.map(lambda cost: cost < 0).astype(bool)
    if negative.any():
        offenders = frame.loc[negative, "description"].tolist()
        raise CatalogError(f"Catalog {source} has negative unit costs: {offenders}")
    frame["unit_cost"] = costs.map(str)

    hours = frame["labor_hours"].map(lambda value: to_decimal(value) if value else ZERO)
    bad_hours = hours.map(lambda value: value is None or value < 0).astype(bool)
    if bad_hours.any():
        offenders = frame.loc[bad_hours, "description"].tolist()
        raise CatalogError(f"Catalog {source} has invalid labor hours: {offenders}")
    frame["labor_hours"] = hours.map(str)

    frame.loc[frame["unit"] == "", "unit"] = "each"
    if frame["stock_number"].eq("").any():
        blank = frame["stock_number"] == ""
        frame.loc[blank, "stock_number"] = [f"ROW{idx:05d}" for idx in frame.index[blank]]
    return frame.reset_index(drop=True)


class Catalog:
    """Catalog provider: category/keyword lookups over supplier items.

    Entries are immutable; the engine only relies on ``unit_cost >= 0``, which
    is enforced at load time.
    """

    def __init__(self, frame: pd.DataFrame, source: str = "<memory>"):
        self.source = source
        self._frame = _prepare_frame(frame, source)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Catalog":
        catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
        if not catalog_path.exists():
            raise CatalogError(f"Catalog not found: {catalog_path}")
        try:
            raw = pd.read_csv(catalog_path, dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
            raise CatalogError(f"Unable to read catalog {catalog_path}: {exc}") from exc
        catalog = cls(raw, source=str(catalog_path))
        logger.info("Loaded %d catalog items from %s", len(catalog), catalog_path)
        return catalog

    def __len__(self) -> int:
        return len(self._frame)

    @staticmethod
    def _entry(row: pd.Series) -> CatalogEntry:
        return CatalogEntry(
            stock_number=row["stock_number"],
            description=row["description"],
            unit_cost=to_decimal(row["unit_cost"]),
            unit=row["unit"],
            category=row["category"],
            subcategory=row["subcategory"],
            size=row["size"],
            gauge=row["gauge"],
            labor_hours=to_decimal(row["labor_hours"]),
        )

    def _entries(self, frame: pd.DataFrame) -> List[CatalogEntry]:
        return [self._entry(row) for _, row in frame.iterrows()]

    def lookup(self, category: Optional[str] = None, keyword: Optional[str] = None) -> List[CatalogEntry]:
        """Return entries in ``category`` whose searchable fields contain ``keyword``.

        Both filters are optional and case-insensitive; with neither, the whole
        catalog is returned in file order.
        """
        frame = self._frame
        if category:
            frame = frame.loc[frame["category"].str.lower() == category.strip().lower()]
        if keyword and keyword.strip():
            needle = keyword.strip().lower()
            mask = pd.Series(False, index=frame.index)
            for col in SEARCH_COLUMNS:
                mask |= frame[col].str.lower().str.contains(needle, regex=False)
            frame = frame.loc[mask]
        return self._entries(frame)

    def get(self, stock_number: str) -> CatalogEntry:
        matches = self._frame.loc[self._frame["stock_number"].str.upper() == str(stock_number).strip().upper()]
        if matches.empty:
            raise CatalogError(f"Unknown stock number: {stock_number}")
        return self._entry(matches.iloc[0])

    def categories(self) -> List[str]:
        return list(dict.fromkeys(self._frame["category"].tolist()))

    def subcategories(self, category: str) -> List[str]:
        subset = self._frame.loc[self._frame["category"].str.lower() == category.strip().lower()]
        return list(dict.fromkeys(subset["subcategory"].tolist()))


__all__ = ["Catalog", "DEFAULT_CATALOG_PATH", "CATALOG_COLUMNS"]
